from trustmap.main import main

main()
