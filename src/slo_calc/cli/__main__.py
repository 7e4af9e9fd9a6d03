from slo_calc.cli.main import main

main()
