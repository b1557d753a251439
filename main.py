from vaccine_watch import cli

if __name__ == "__main__":
    cli.main()
