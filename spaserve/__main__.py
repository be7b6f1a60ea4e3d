from spaserve.main import main

main()
