# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Entry point for the UDLGen command-line interface."""

import argparse
import logging
import sys
from pathlib import Path

from udlgen.compiler.artifact import serialize, write_artifact
from udlgen.compiler.build import CompilerError, compile_files, compile_source
from udlgen.compiler.ffi import derive_signatures
from udlgen.errors import InterfaceError
from udlgen.model.entities import ComponentInterface
from udlgen.model.ffi import FFIFunction
from udlgen.oracle import OracleError, available_languages
from udlgen.render import TypeTableRenderer, render_bindings
from udlgen.workspace.config import WorkspaceConfigError, find_workspace_config, load_workspace_config

# ###############
# Public Interface
# ###############


def main() -> None:
    """Run the UDLGen CLI."""
    parser = argparse.ArgumentParser(
        prog="udlgen",
        description="UDLGen: interface model and FFI protocol for multi-language bindings",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # check subcommand
    check_parser = subparsers.add_parser(
        "check",
        help="Validate interface definition files",
        description="Compile .udl files and report the first error in each.",
    )
    check_parser.add_argument("files", nargs="+", help="The .udl files to check")

    # dump subcommand
    dump_parser = subparsers.add_parser(
        "dump",
        help="Print the compiled Component Interface as JSON",
        description="Compile a .udl file and print or write its Component Interface artifact.",
    )
    dump_parser.add_argument("file", help="The .udl file to compile")
    dump_parser.add_argument("-o", "--output", help="Write the artifact to this path instead of stdout")

    # ffi subcommand
    ffi_parser = subparsers.add_parser(
        "ffi",
        help="List the exported FFI symbols",
        description="Derive and print the FFI signatures of a .udl file.",
    )
    ffi_parser.add_argument("file", help="The .udl file to compile")

    # types subcommand
    types_parser = subparsers.add_parser(
        "types",
        help="Show how each used type maps into a target language",
        description="Print the type oracle expansion for every type used by a .udl file.",
    )
    types_parser.add_argument("file", help="The .udl file to compile")
    types_parser.add_argument(
        "--language",
        action="append",
        choices=available_languages(),
        help="Target language (repeatable; default: the workspace 'languages' setting)",
    )

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if args.command is None:
        parser.print_help()
        sys.exit(0)

    sys.exit(_dispatch(args))


# ################
# Implementation
# ################

_DEFAULT_BUILD_DIR = ".udlgen-build"


def _dispatch(args: argparse.Namespace) -> int:
    """Dispatch to the appropriate subcommand handler."""
    if args.command == "check":
        return _cmd_check(args)
    if args.command == "dump":
        return _cmd_dump(args)
    if args.command == "ffi":
        return _cmd_ffi(args)
    if args.command == "types":
        return _cmd_types(args)
    return 0


def _cmd_check(args: argparse.Namespace) -> int:
    """Handle the check subcommand."""
    files = [Path(f).resolve() for f in args.files]
    for f in files:
        if not f.is_file():
            print(f"Error: file '{f}' does not exist.", file=sys.stderr)
            return 1

    build_dir = files[0].parent / _DEFAULT_BUILD_DIR
    config_path = find_workspace_config(files[0])
    if config_path is not None:
        try:
            config = load_workspace_config(config_path)
        except WorkspaceConfigError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
        build_dir = config_path.parent / config.build_directory

    print(f"Checking {len(files)} interface file(s)...")
    try:
        compile_files(files, build_dir)
    except CompilerError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print("No issues found.")
    return 0


def _cmd_dump(args: argparse.Namespace) -> int:
    """Handle the dump subcommand."""
    ci = _compile(Path(args.file))
    if ci is None:
        return 1
    if args.output:
        write_artifact(ci, Path(args.output))
        print(f"Wrote '{args.output}'.")
    else:
        print(serialize(ci))
    return 0


def _cmd_ffi(args: argparse.Namespace) -> int:
    """Handle the ffi subcommand."""
    ci = _compile(Path(args.file))
    if ci is None:
        return 1
    signatures = derive_signatures(ci)
    for func in signatures.functions:
        print(_format_ffi_function(func))
    for method in signatures.callback_methods:
        ret = "" if method.return_type is None else f" -> {method.return_type.canonical_name}"
        arg_types = ", ".join(t.canonical_name for t in method.arguments)
        print(f"callback {method.interface_name}[{method.index}] {method.method_name}({arg_types}){ret}")
    return 0


def _cmd_types(args: argparse.Namespace) -> int:
    """Handle the types subcommand."""
    path = Path(args.file)
    languages: list[str] = args.language or []
    if not languages:
        config_path = find_workspace_config(path.resolve())
        if config_path is not None:
            try:
                languages = load_workspace_config(config_path).languages
            except WorkspaceConfigError as exc:
                print(f"Error: {exc}", file=sys.stderr)
                return 1
    if not languages:
        print("Error: no target language given; pass --language or set 'languages' in .udlgen.yaml.", file=sys.stderr)
        return 1

    ci = _compile(path)
    if ci is None:
        return 1
    for language in languages:
        try:
            files = render_bindings(TypeTableRenderer(), ci, language)
        except OracleError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
        for text in files.values():
            print(text, end="")
    return 0


def _compile(path: Path) -> ComponentInterface | None:
    """Compile *path*, printing the error and returning None on failure."""
    try:
        source = path.read_text(encoding="utf-8")
    except OSError as exc:
        print(f"Error: cannot read '{path}': {exc}", file=sys.stderr)
        return None
    try:
        return compile_source(source)
    except InterfaceError as exc:
        print(f"Error: {path}: {exc}", file=sys.stderr)
        return None


def _format_ffi_function(func: FFIFunction) -> str:
    arguments = ", ".join(f"{arg.name}: {arg.type.value}" for arg in func.arguments)
    line = f"{func.name}({arguments})"
    if func.return_type is not None:
        line += f" -> {func.return_type.value}"
    if func.error_type is not None:
        line += f" throws {func.error_type}"
    if func.exclusive:
        line += " [exclusive]"
    return line
