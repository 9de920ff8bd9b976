from ecgmonitor.app import main


main()
