from dyn_qps.cli import main

main()
