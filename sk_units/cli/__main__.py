from sk_units.cli.main import main

main()
