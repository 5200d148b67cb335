from buddyblock.apps.cli.app import main

main()
