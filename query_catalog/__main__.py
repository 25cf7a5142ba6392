from query_catalog.cli import main

main()
