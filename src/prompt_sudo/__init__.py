"""prompt-sudo: gate a privileged command behind remote human approval."""

__version__ = "0.1.0"
