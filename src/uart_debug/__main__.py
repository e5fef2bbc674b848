from uart_debug.cli.main import main

main()
