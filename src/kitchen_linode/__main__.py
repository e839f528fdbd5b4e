from kitchen_linode.cli import cli


def main():
    cli(prog_name="kitchen-linode")


if __name__ == "__main__":
    main()
