"""
__main__ provides the console-script entrypoint for the bertbridge package.
"""
from __future__ import annotations

import sys
import traceback

from bertbridge.cli import CLI
from bertbridge.command import ConvertCommand, ExpandCommand
from bertbridge.console import logger
from bertbridge.convert import Converter, load_schema
from bertbridge.translate import TranslationError, expand


def run_expand(command: ExpandCommand) -> None:
    """Print the concrete mapping for `command`'s schema and layer count."""
    schema = load_schema(command.schema)
    entries = expand(schema, command.layers, prefix=command.prefix)
    logger.header(f"Schema {schema.name}", f"v{schema.version}, {command.layers} layers")
    logger.table(
        columns=["#", "target", "op", "sources"],
        rows=[
            [str(e.index), e.target, e.op.value, "\n".join(e.sources)]
            for e in entries
        ],
    )
    logger.success(f"{len(entries)} entries")


def main(argv: list[str] | None = None) -> None:
    """
    main is the entrypoint for the `bertbridge` console script.
    """
    try:
        command = CLI().parse_command(argv)

        match command:
            case ConvertCommand() as c:
                logger.header("Convert", c.manifest.name)
                Converter(c.manifest).run()
            case ExpandCommand() as c:
                run_expand(c)
            case _:
                raise ValueError(f"Invalid command payload: {type(command)!r}")
    except SystemExit as e:
        code = int(e.code) if isinstance(e.code, int) else 1
        if code == 0:
            raise
        sys.exit(code)
    except TranslationError as e:
        logger.error(f"translation failed: {e}")
        logger.key_value(e.describe().as_dict(), title="Report")
        sys.exit(1)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        print(f"details: {e!r}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"unexpected error: {type(e).__name__}: {e}", file=sys.stderr)
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
