import sys

from motif import Call, RenderPass
from motif.motif_values import parse_value_group


def parse_grid(text: str):
    parts = [p for p in text.lower().replace('*', 'x').split('x') if p.strip()]
    dims = [max(1, int(p)) for p in parts[:3]] or [1]
    return tuple(dims)


def parse_line(line: str) -> Call:
    """`pick a, b, c` -> Call('pick', ['a', 'b', 'c'])."""
    name, _, rest = line.strip().partition(' ')
    return Call(name, parse_value_group(rest, symbol=','), site=name)


def print_cells(renderer: RenderPass, result):
    if result.status == 'error':
        print(result.format_error(), file=sys.stderr)
        return
    cols = renderer.grid.x
    for start in range(0, len(result.value), cols):
        print(" | ".join(result.value[start:start + cols]))


def main():
    """Evaluate one operator call per line over a grid: `motif_repl.py [GRID] [SEED]`."""
    try:
        grid = parse_grid(sys.argv[1]) if len(sys.argv) > 1 else (1, 1)
    except ValueError:
        print(f"Error: invalid grid: {sys.argv[1]} (expected e.g. 5, 3x4 or 2x2x2)", file=sys.stderr)
        print("usage: motif_repl.py [GRID] [SEED]", file=sys.stderr)
        raise SystemExit(1)
    seed = sys.argv[2] if len(sys.argv) > 2 else 'motif'
    renderer = RenderPass(grid, seed=seed)

    print("motif REPL v0.1")
    print(f"grid {'x'.join(map(str, grid))}, seed {seed!r}. Type 'exit' or press Ctrl+D to quit.")

    while True:
        try:
            line = input(">> ").strip()
            if not line:
                continue
            if line == "exit":
                break
            print_cells(renderer, renderer.render(parse_line(line)))
        except EOFError:
            print("\nExiting.")
            break
        except Exception as e:
            print(f"Error: {e}", file=sys.stderr)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\nExiting.")
