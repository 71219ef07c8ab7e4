import argparse
import os
import sys

from typing import Callable, List, Optional
from huffman import DegenerateInputError
from mzip import EncodeResult, MalformedFilenameError, MzipArchiver

PROMPT = "File name (type nothing to quit): "  #: Interactive shell prompt


def get_parser():
    """Create and configure the CLI argument parser.

    :returns: Configured argument parser.
    :rtype: argparse.ArgumentParser
    """
    parser = argparse.ArgumentParser(
        description="Static Huffman encoder producing MZIP artifacts"
    )
    subparsers = parser.add_subparsers(
        title="subcommands", dest="cmd", required=True
    )

    encode = subparsers.add_parser(
        "encode", aliases=["e"], help="Encode files into MZIP artifacts"
    )
    encode.add_argument("target", nargs="+", help="Files to encode")
    encode.add_argument(
        "-o",
        "--output-dir",
        default=None,
        help="Directory for artifacts (default: next to each input)",
    )
    encode.add_argument(
        "-P",
        "--no-progress",
        action="store_true",
        help="Hide the progress line",
    )

    shell = subparsers.add_parser(
        "shell", aliases=["s"], help="Prompt for file names until empty input"
    )
    shell.add_argument(
        "-o",
        "--output-dir",
        default=None,
        help="Directory for artifacts (default: next to each input)",
    )
    shell.add_argument(
        "-P",
        "--no-progress",
        action="store_true",
        help="Hide the progress line",
    )

    decode = subparsers.add_parser(
        "decode", aliases=["d"], help="Restore a file from an MZIP artifact"
    )
    decode.add_argument("artifact", help="MZIP artifact to decode")
    decode.add_argument(
        "-o",
        "--output-dir",
        default=".",
        help="Destination directory (default: current)",
    )
    decode.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Overwrite an existing file",
    )

    return parser


def _print_progress(line: str) -> None:
    """Render and flush a single progress line in-place (carriage return).

    :param line: The textual progress line to display.
    :type line: str
    :returns: None
    :rtype: None
    """
    sys.stdout.write("\r" + line)
    sys.stdout.flush()


def _fmt_pct(done: int, total: int) -> str:
    """Format a completion percentage string like ``12.34%``.

    :param done: Units completed.
    :type done: int
    :param total: Total units to complete.
    :type total: int
    :returns: Percentage.
    :rtype: str
    """
    if total <= 0:
        return "0%"
    pct = 100.0 * (done / float(total))
    return f"{pct:6.2f}%"


def _fmt_bytes(n: int) -> str:
    """Format a byte count into a human-readable string.

    :param n: Number of bytes.
    :type n: int
    :returns: Human-readable string.
    :rtype: str
    """
    for unit in ['', 'Ki', 'Mi', 'Gi', 'Ti']:
        if abs(n) < 1024:
            return f"{n:.2f} {unit}B"
        n /= 1024
    return f"{n:.2f} PiB"


class FileProgress:
    """Callable progress reporter for one encode run.

    Both passes over the input arrive as a single ``0..2*size`` range; the
    label switches from ``Counting`` to ``Encoding`` halfway.

    :ivar path: Path displayed for the file being encoded.
    :type path: str
    :ivar shown: Whether a progress line has been printed.
    :type shown: bool
    """

    def __init__(self, path: str) -> None:
        """Initialize progress reporter for one input file.

        :param path: Path to display in the progress line.
        :type path: str
        :returns: None
        :rtype: None
        """
        self.path = path
        self.shown = False
        self._last_reported = -1

    def __call__(self, done: int, total: int) -> None:
        """Update the progress display.

        :param done: Bytes processed over both passes.
        :type done: int
        :param total: Twice the input size.
        :type total: int
        :returns: None
        :rtype: None
        """
        if total <= 0:
            return
        percent_bucket = int((done * 100) / total)
        if percent_bucket == self._last_reported:
            return
        self._last_reported = percent_bucket
        self.shown = True
        label = "Counting" if done * 2 <= total else "Encoding"
        _print_progress(f"{label} {self.path}  {_fmt_pct(done, total)}")


def _report(result: EncodeResult) -> None:
    """Print the outcome and size summary of a successful encode.

    :param result: Description of the written artifact.
    :type result: EncodeResult
    :returns: None
    :rtype: None
    """
    print(f"[+] {result.source} -> {result.output}")
    print("Size before compression: ", _fmt_bytes(result.original_size))
    print("Size after compression: ", _fmt_bytes(result.artifact_size))
    if result.artifact_size:
        ratio = result.original_size / result.artifact_size
        print(f"Compression ratio: {ratio:.2f}")


def encode_one(
    path: str, output_dir: Optional[str], hide_progress: bool
) -> bool:
    """Encode a single file and print the outcome.

    Every failure is reported with a distinct ``[!]`` message; a missing
    input is reported as ``File was not found``.

    :param path: File to encode.
    :type path: str
    :param output_dir: Artifact directory, ``None`` for next to the input.
    :type output_dir: Optional[str]
    :param hide_progress: Whether to suppress the progress line.
    :type hide_progress: bool
    :returns: ``True`` if the artifact was written.
    :rtype: bool
    """
    on_prog = None if hide_progress else FileProgress(path)
    try:
        try:
            result = MzipArchiver().encode_file(
                path, output_dir=output_dir, on_progress=on_prog
            )
        finally:
            if on_prog is not None and on_prog.shown:
                sys.stdout.write("\n")
                sys.stdout.flush()
    except FileNotFoundError:
        print(f"[!] File was not found: {path}")
        return False
    except DegenerateInputError:
        print(f"[!] Nothing to encode, file is empty: {path}")
        return False
    except MalformedFilenameError as e:
        print(f"[!] {e}")
        return False
    except ValueError as e:
        print(f"[!] Failed to encode {path}: {e}")
        return False
    except FileExistsError as e:
        print(f"[!] {e}")
        return False
    except OSError as e:
        print(f"[!] I/O error while encoding {path}: {e}")
        return False
    _report(result)
    return True


def encode_files(
    targets: List[str], output_dir: Optional[str], hide_progress: bool
) -> int:
    """Encode each target in turn.

    :param targets: Files to encode.
    :type targets: List[str]
    :param output_dir: Artifact directory, ``None`` for next to each input.
    :type output_dir: Optional[str]
    :param hide_progress: Whether to suppress the progress line.
    :type hide_progress: bool
    :returns: Number of targets that failed.
    :rtype: int
    """
    failures = 0
    for target in targets:
        if not encode_one(target, output_dir, hide_progress):
            failures += 1
    return failures


def interactive_shell(
    output_dir: Optional[str],
    hide_progress: bool,
    read_line: Callable[[str], str] = input,
) -> int:
    """Prompt for file names and encode each until an empty answer.

    :param output_dir: Artifact directory, ``None`` for next to each input.
    :type output_dir: Optional[str]
    :param hide_progress: Whether to suppress the progress line.
    :type hide_progress: bool
    :param read_line: Prompting reader, ``input`` by default.
    :type read_line: Callable[[str], str]
    :returns: Number of entries that failed.
    :rtype: int
    """
    failures = 0
    while True:
        try:
            name = read_line(PROMPT).strip()
        except EOFError:
            print()
            break
        if not name:
            break
        if not encode_one(name, output_dir, hide_progress):
            failures += 1
        print()
    return failures


def decode_artifact(artifact: str, output_dir: str, force: bool) -> bool:
    """Restore a file from an MZIP artifact and print the outcome.

    :param artifact: Artifact path.
    :type artifact: str
    :param output_dir: Destination directory.
    :type output_dir: str
    :param force: Overwrite an existing file.
    :type force: bool
    :returns: ``True`` on success.
    :rtype: bool
    """
    try:
        target = MzipArchiver().decode_file(
            artifact, output_dir=os.path.abspath(output_dir), overwrite=force
        )
    except FileNotFoundError:
        print(f"[!] Artifact file not found: {artifact}")
        return False
    except FileExistsError as e:
        print(f"[!] {e} (use --force)")
        return False
    except (ValueError, EOFError) as e:
        print(f"[!] Invalid MZIP artifact {artifact}: {e}")
        return False
    except OSError as e:
        print(f"[!] I/O error while decoding {artifact}: {e}")
        return False
    print(f"[+] {artifact} -> {target}")
    return True


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the CLI tool.

    :param argv: Arguments, ``sys.argv[1:]`` when ``None``.
    :type argv: Optional[List[str]]
    :returns: Process exit status.
    :rtype: int
    """
    parser = get_parser()
    args = parser.parse_args(argv)

    if args.cmd in ["encode", "e"]:
        failures = encode_files(
            args.target, args.output_dir, getattr(args, "no_progress", False)
        )
    elif args.cmd in ["shell", "s"]:
        failures = interactive_shell(
            args.output_dir, getattr(args, "no_progress", False)
        )
    else:
        failures = 0 if decode_artifact(
            args.artifact, args.output_dir, args.force
        ) else 1
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
