from fleetmatch import main

main()
