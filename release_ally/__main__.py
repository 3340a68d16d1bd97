from release_ally.app import main

main()
