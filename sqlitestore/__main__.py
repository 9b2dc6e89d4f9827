from sqlitestore.cli import main

main()
