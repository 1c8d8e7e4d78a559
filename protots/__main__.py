from protots.plugin import main

main()
