from rinth.rinth import cli

cli(prog_name="rinth")
