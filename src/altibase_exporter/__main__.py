from altibase_exporter.cli import main

main()
