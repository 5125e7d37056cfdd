from rich.pretty import pprint

from argbind import *


@record
class CreateText:
    input: str = positional(0, help="input file")
    output: str = option("--out", "-o", help="output file")
    use_markdown: bool = option("--usemarkdown", help="render markdown")


app = App.default(prog="demo", colorful=True)


@app.command("add", help="add two integers")
def add(a: int, b: int):
    print(a + b)


@app.command("create text")
def create(options: CreateText):
    """Create a text file from an input file."""
    pprint(options)


if __name__ == '__main__':
    pprint(app)
    invoke(app)
