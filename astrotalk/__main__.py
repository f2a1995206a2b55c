from astrotalk.main import run

run()
