from thread_finder.cli import main

main()
