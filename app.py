from medheat.ui.pages import build_app
from medheat.utils.logging import setup_logging


def main():
    setup_logging("INFO")
    demo = build_app()
    demo.launch()


if __name__ == "__main__":
    main()
