from .channel import TelegramChannel, make_request_id, split_request_id

__all__ = ["TelegramChannel", "make_request_id", "split_request_id"]
