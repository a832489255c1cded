#!/usr/bin/env python3
"""
intbas - Integer BASIC tool
Tokenizes, lists, checks and renumbers Apple II Integer BASIC programs.
"""

import argparse
import logging
import sys
from typing import Optional, Tuple

from .detokenizer import Detokenizer
from .diagnostics import DiagnosticProvider, Severity
from .errors import (IntBasicException, LineTooLongError, MemoryLayoutError, RenumberBoundsError,
                     RenumberParameterError)
from .memory import DEFAULT_HIMEM, DEFAULT_LOMEM, IMAGE_SIZE, new_image
from .renumber import LineNumberTool, apply_edits, line_selection
from .settings import Settings, load_settings
from .tokenizer import Tokenizer
from .tokens import hex_from_bytes

DEFAULT_OUTPUT = "out.bin"


def read_text(path: str) -> str:
    if path == '-':
        return sys.stdin.read()
    with open(path, 'r') as f:
        return f.read()


def read_binary(path: str) -> bytes:
    if path == '-':
        return sys.stdin.buffer.read()
    with open(path, 'rb') as f:
        return f.read()


def write_text(path: Optional[str], text: str):
    if path is None or path == '-':
        sys.stdout.write(text)
    else:
        with open(path, 'w') as f:
            f.write(text)


def parse_lines(value: str) -> Tuple[int, int]:
    """
    Parse a FIRST:LAST row range (1-based, inclusive).

    Returns:
        Tuple of 0-based (first, last) rows
    """
    first, _, last = value.partition(':')
    try:
        first_row = int(first)
        last_row = int(last) if last else first_row
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid line range `{value}'")
    if first_row < 1 or last_row < first_row:
        raise argparse.ArgumentTypeError(f"invalid line range `{value}'")
    return first_row - 1, last_row - 1


def cmd_tokenize(args, settings: Settings):
    code = Tokenizer().tokenize(read_text(args.input))
    if args.hex:
        print(hex_from_bytes(code))
        return
    data = bytes(new_image(code, args.himem, args.lomem)) if args.image else code
    output = args.output or DEFAULT_OUTPUT
    with open(output, 'wb') as f:
        f.write(data)
    print(f"Wrote {len(data)} bytes to {output}", file=sys.stderr)


def cmd_detokenize(args, settings: Settings):
    data = read_binary(args.input)
    start, end = args.start, args.end
    # anything smaller than a full image is taken as bare program records
    if args.raw or (len(data) < IMAGE_SIZE and start is None and end is None):
        start = 0 if start is None else start
        end = len(data) if end is None else end
    text = Detokenizer(settings).detokenize(data, start, end)
    if not text:
        print(f"Error: No program found in {args.input}", file=sys.stderr)
        sys.exit(1)
    write_text(args.output, text)


def cmd_check(args, settings: Settings):
    result = DiagnosticProvider(settings).analyze(read_text(args.input))
    errors = 0
    for diag in result.diagnostics:
        start = diag.range.start
        print(f"{args.input}:{start.line + 1}:{start.character + 1}: "
              f"{Severity.NAMES[diag.severity]}: {diag.message}")
        if diag.severity == Severity.ERROR:
            errors += 1
    if errors:
        sys.exit(1)


def cmd_renumber(args, settings: Settings):
    text = read_text(args.input)
    selection = line_selection(*args.lines) if args.lines else None
    edits = LineNumberTool().renumber(text, args.start, args.step, args.refs, selection)
    result = apply_edits(text, edits)
    if args.in_place:
        if args.input == '-':
            print("Error: Cannot rewrite standard input in place", file=sys.stderr)
            sys.exit(1)
        write_text(args.input, result)
    else:
        write_text(args.output, result)


def cmd_serve(args, settings: Settings):
    from .server import serve
    serve(args.host, args.port, settings)


def main(argv=None):
    parser = argparse.ArgumentParser(description='intbas - Integer BASIC tool')
    parser.add_argument('--settings', '-s', help='JSON settings file')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')

    subparsers = parser.add_subparsers(dest='command', help='Command')

    # TOKENIZE command
    parser_tok = subparsers.add_parser('tokenize', help='Convert a listing to tokenized records')
    parser_tok.add_argument('input', help='Listing file (- for stdin)')
    parser_tok.add_argument('--output', '-o', help=f'Output file (default: {DEFAULT_OUTPUT})')
    parser_tok.add_argument('--hex', action='store_true', help='Print the records as hex instead')
    parser_tok.add_argument('--image', action='store_true', help='Write a 64K memory image with the program loaded')
    parser_tok.add_argument('--himem', type=int, default=DEFAULT_HIMEM, help='HIMEM for --image')
    parser_tok.add_argument('--lomem', type=int, default=DEFAULT_LOMEM, help='LOMEM for --image')

    # DETOKENIZE command
    parser_detok = subparsers.add_parser('detokenize', help='List a tokenized program')
    parser_detok.add_argument('input', help='Memory image or program file (- for stdin)')
    parser_detok.add_argument('--output', '-o', help='Output file (default: stdout)')
    parser_detok.add_argument('--raw', action='store_true', help='Input holds only program records')
    parser_detok.add_argument('--start', type=int, help='Address of the first record')
    parser_detok.add_argument('--end', type=int, help='Address after the last record')

    # CHECK command
    parser_check = subparsers.add_parser('check', help='Report diagnostics')
    parser_check.add_argument('input', help='Listing file (- for stdin)')

    # RENUMBER command
    parser_ren = subparsers.add_parser('renumber', help='Renumber lines')
    parser_ren.add_argument('input', help='Listing file (- for stdin)')
    parser_ren.add_argument('--start', default='10', help='First new line number')
    parser_ren.add_argument('--step', default='10', help='Line number increment')
    parser_ren.add_argument('--lines', type=parse_lines, help='Only rows FIRST:LAST (1-based)')
    parser_ren.add_argument('--refs', action='store_true', help='Update GOTO, GOSUB and THEN targets')
    output_group = parser_ren.add_mutually_exclusive_group()
    output_group.add_argument('--output', '-o', help='Output file (default: stdout)')
    output_group.add_argument('--in-place', '-i', action='store_true', help='Rewrite the input file')

    # SERVE command
    parser_serve = subparsers.add_parser('serve', help='Run the HTTP service')
    parser_serve.add_argument('--host', type=str, default='127.0.0.1', help='Host to bind to (default: 127.0.0.1)')
    parser_serve.add_argument('--port', type=int, default=8000, help='Port to listen on (default: 8000)')

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    try:
        settings = load_settings(args.settings) if args.settings else Settings()

        if args.command == 'tokenize':
            cmd_tokenize(args, settings)
        elif args.command == 'detokenize':
            cmd_detokenize(args, settings)
        elif args.command == 'check':
            cmd_check(args, settings)
        elif args.command == 'renumber':
            cmd_renumber(args, settings)
        elif args.command == 'serve':
            cmd_serve(args, settings)
    except LineTooLongError as e:
        print(f"Error: line {e.row + 1}: {e}", file=sys.stderr)
        sys.exit(1)
    except (RenumberParameterError, RenumberBoundsError) as e:
        print(f"Error: Cannot renumber - {e}", file=sys.stderr)
        sys.exit(1)
    except MemoryLayoutError as e:
        print(f"Error: Memory layout - {e}", file=sys.stderr)
        sys.exit(1)
    except IntBasicException as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
