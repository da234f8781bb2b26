from debug_blocks.cli import main

main(prog_name="debug-blocks")
