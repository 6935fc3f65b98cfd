from importlib import resources


def load_format_reference() -> str:
    with resources.files(__package__).joinpath("data/diagram_format.md").open("r", encoding="utf-8") as fh:
        return fh.read()
