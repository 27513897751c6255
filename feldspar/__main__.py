from feldspar.cli import main

main()
