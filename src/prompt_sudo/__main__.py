from prompt_sudo.cli import main

main()
