from spec2html.cli import run

run()
