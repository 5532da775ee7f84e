from tube_json.cli import run

run()
