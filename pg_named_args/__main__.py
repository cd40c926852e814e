from pg_named_args.cli import main

if __name__ == "__main__":
    main()
