from softarch.cli import main

main()
