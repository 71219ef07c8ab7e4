import os
import tempfile
from typing import (
    BinaryIO, Callable, Dict, Iterable, List, NamedTuple, Optional, Tuple
)

from bitops import BitReader, BitWriter
from huffman import (
    Internal,
    Leaf,
    Node,
    build_tree,
    count_frequencies,
    generate_codes,
    padding_for,
    parse_tree,
    payload_bits,
    render_tree,
)

CRLF = b"\r\n"  #: MZIP header line terminator
SUFFIX = "MZIP"  #: Appended to the output name stem

ProgressCallback = Callable[[int, int], None]


class MalformedFilenameError(ValueError):
    """Raised when an output name cannot be derived from a file name."""


class EncodeResult(NamedTuple):
    """Summary of a written MZIP artifact.

    :ivar source: Input file path.
    :ivar output: Artifact path.
    :ivar original_size: Input size in bytes.
    :ivar artifact_size: Artifact size in bytes, header included.
    :ivar payload_bits: Codeword bits before padding.
    :ivar padding: Zero bits appended to the payload (1-8).
    """

    source: str
    output: str
    original_size: int
    artifact_size: int
    payload_bits: int
    padding: int


def derive_output_name(filename: str) -> str:
    """Derive the artifact name for ``filename``.

    Everything up to and including the first ``.`` is kept, uppercased,
    and ``MZIP`` is appended: ``report.v2.csv`` becomes ``REPORT.MZIP``.

    :param filename: Input file name (no directory part).
    :type filename: str
    :returns: Artifact file name.
    :rtype: str
    :raises MalformedFilenameError: If ``filename`` has no ``.``.
    """
    dot = filename.find(".")
    if dot < 0:
        raise MalformedFilenameError(
            f"Cannot derive an MZIP name from {filename!r}: no '.' in name"
        )
    return filename[:dot + 1].upper() + SUFFIX


def build_header(filename: str, root: Node, padding: int) -> bytes:
    """Serialize the three CRLF-terminated MZIP header lines.

    :param filename: Original file name, written uppercased.
    :type filename: str
    :param root: Huffman tree root.
    :type root: Node
    :param padding: Padding bit count.
    :type padding: int
    :returns: Header bytes.
    :rtype: bytes
    """
    return (
        filename.upper().encode("utf-8") + CRLF
        + render_tree(root).encode("ascii") + CRLF
        + str(padding).encode("ascii") + CRLF
    )


def _code_table(codes: Dict[int, str]) -> List[Optional[Tuple[int, int]]]:
    """Index codes by byte value as ``(value, nbits)`` pairs."""
    table: List[Optional[Tuple[int, int]]] = [None] * 256
    for symbol, code in codes.items():
        table[symbol] = (int(code, 2) if code else 0, len(code))
    return table


class MzipArchiver:
    """Static Huffman encoder producing MZIP artifacts.

    The input is read twice: once to build the frequency table and once
    to emit codewords. Padding depends only on the table and the code
    lengths, so the header is known before the payload is packed.

    :ivar CHUNK_SIZE: Read size used for both passes.
    :type CHUNK_SIZE: int
    """

    CHUNK_SIZE = 64 * 1024

    def compress(self, filename: str, data: bytes) -> bytes:
        """Encode in-memory ``data`` into a complete MZIP artifact.

        :param filename: Name recorded in the header.
        :type filename: str
        :param data: Bytes to encode.
        :type data: bytes
        :returns: Artifact bytes (header and payload).
        :rtype: bytes
        :raises DegenerateInputError: If ``data`` is empty.
        """
        frequencies = count_frequencies([data])
        root = build_tree(frequencies)
        codes = generate_codes(root)
        nbits = payload_bits(frequencies, codes)

        out = bytearray(build_header(filename, root, padding_for(nbits)))
        self._pack([data], codes, nbits, out.extend)
        return bytes(out)

    def encode_file(
        self,
        path: str,
        output_dir: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> EncodeResult:
        """Encode the file at ``path`` into an MZIP artifact on disk.

        The artifact is named by :func:`derive_output_name` from the base
        name of ``path`` and written next to the input unless
        ``output_dir`` is given. Nothing is created if the input is empty
        or its name is malformed. The payload is written to a temporary file
        in the target directory and renamed over the artifact only once it
        is complete, so a failed write leaves no partial artifact behind.

        :param path: File to encode.
        :type path: str
        :param output_dir: Directory for the artifact.
        :type output_dir: Optional[str]
        :param on_progress: Optional callback ``on_progress(done, total)``;
                            both passes are reported as one range of
                            ``2 * size`` bytes.
        :type on_progress: Optional[ProgressCallback]
        :returns: Description of the written artifact.
        :rtype: EncodeResult
        :raises FileNotFoundError: If ``path`` does not exist.
        :raises DegenerateInputError: If the file is empty.
        :raises MalformedFilenameError: If the file name has no ``.``.
        :raises FileExistsError: If the artifact path is the input itself.
        :raises OSError: On any other read or write failure.
        """
        with open(path, "rb") as f:
            size = os.fstat(f.fileno()).st_size
            frequencies = count_frequencies(
                self._chunks(f), 2 * size, on_progress
            )

        root = build_tree(frequencies)
        filename = os.path.basename(path)
        if output_dir is None:
            output_dir = os.path.dirname(path)
        out_path = os.path.join(output_dir, derive_output_name(filename))

        codes = generate_codes(root)
        nbits = payload_bits(frequencies, codes)
        padding = padding_for(nbits)

        if os.path.exists(out_path) and os.path.samefile(path, out_path):
            raise FileExistsError(
                f"Refusing to encode {path}: the artifact would overwrite it"
            )

        fd, tmp_path = tempfile.mkstemp(
            prefix=".", suffix=".part", dir=output_dir or "."
        )
        try:
            with os.fdopen(fd, "wb") as out, open(path, "rb") as f:
                out.write(build_header(filename, root, padding))
                self._pack(
                    self._chunks(f), codes, nbits, out.write,
                    on_progress, size, 2 * size,
                )
            os.replace(tmp_path, out_path)
        except BaseException:
            try:
                os.remove(tmp_path)
            except OSError:
                pass
            raise

        return EncodeResult(
            source=path,
            output=out_path,
            original_size=size,
            artifact_size=os.path.getsize(out_path),
            payload_bits=nbits,
            padding=padding,
        )

    def _chunks(self, f: BinaryIO) -> Iterable[bytes]:
        return iter(lambda: f.read(self.CHUNK_SIZE), b"")

    @staticmethod
    def _pack(
        chunks: Iterable[bytes],
        codes: Dict[int, str],
        expected_bits: int,
        emit: Callable[[bytes], object],
        on_progress: Optional[ProgressCallback] = None,
        done: int = 0,
        total: int = 0,
    ) -> int:
        """Translate ``chunks`` to codewords and hand packed bytes to ``emit``.

        :param chunks: Input byte chunks (second pass).
        :type chunks: Iterable[bytes]
        :param codes: Code table from :func:`generate_codes`.
        :type codes: Dict[int, str]
        :param expected_bits: Payload length announced by the header.
        :type expected_bits: int
        :param emit: Sink for packed bytes.
        :type emit: Callable[[bytes], object]
        :param on_progress: Optional progress callback.
        :type on_progress: Optional[ProgressCallback]
        :param done: Progress offset reported before the first chunk.
        :type done: int
        :param total: Total passed to ``on_progress``.
        :type total: int
        :returns: Padding bit count.
        :rtype: int
        :raises ValueError: If the input no longer matches its frequency
            table (changed between passes).
        """
        table = _code_table(codes)
        writer = BitWriter()
        for chunk in chunks:
            for b in chunk:
                entry = table[b]
                if entry is None:
                    raise ValueError(
                        f"Byte {b} has no code: input changed between passes"
                    )
                writer.write_bits(*entry)
            emit(writer.take())
            done += len(chunk)
            if on_progress is not None:
                on_progress(done, total)

        if writer.total_bits != expected_bits:
            raise ValueError(
                f"Payload has {writer.total_bits} bits, header announced "
                f"{expected_bits}: input changed between passes"
            )
        padding = writer.pad()
        emit(writer.take())
        return padding

    def decompress(self, artifact: bytes) -> Tuple[str, bytes]:
        """Decode an artifact produced by :meth:`compress`.

        The original case of the file name is not recorded, so the
        returned name is the uppercased one from the header.

        :param artifact: Complete MZIP artifact.
        :type artifact: bytes
        :returns: Tuple ``(name, data)``.
        :rtype: Tuple[str, bytes]
        :raises ValueError: If the header is malformed or the tree is a
            single leaf (its symbol count is not recorded).
        :raises EOFError: If the payload ends inside a codeword.
        """
        parts = artifact.split(CRLF, 3)
        if len(parts) != 4:
            raise ValueError("Invalid MZIP artifact (truncated header)")
        name_raw, tree_raw, padding_raw, payload = parts

        if not padding_raw.isdigit():
            raise ValueError(f"Invalid padding line: {padding_raw!r}")
        padding = int(padding_raw)
        if not 1 <= padding <= 8:
            raise ValueError(f"Padding out of range: {padding}")
        nbits = len(payload) * 8 - padding
        if nbits < 0:
            raise ValueError("Payload shorter than its padding")

        root = parse_tree(tree_raw.decode("ascii"))
        if isinstance(root, Leaf):
            raise ValueError(
                "Single-symbol artifact cannot be decoded: "
                "the symbol count is not recorded"
            )

        reader = BitReader(payload, nbits)
        out = bytearray()
        while reader.remaining:
            node = root
            while isinstance(node, Internal):
                node = node.right if reader.read_bit() else node.left
            out.append(node.symbol)
        return name_raw.decode("utf-8"), bytes(out)

    def decode_file(
        self, path: str, output_dir: str = ".", overwrite: bool = False
    ) -> str:
        """Decode the artifact at ``path`` into ``output_dir``.

        :param path: MZIP artifact to read.
        :type path: str
        :param output_dir: Destination directory.
        :type output_dir: str
        :param overwrite: Replace an existing file of the same name.
        :type overwrite: bool
        :returns: Path of the restored file.
        :rtype: str
        :raises FileExistsError: If the target exists and ``overwrite`` is
            false.
        :raises ValueError: If the artifact is malformed.
        """
        with open(path, "rb") as f:
            artifact = f.read()
        name, data = self.decompress(artifact)

        name = os.path.basename(name.replace("\\", "/"))
        if name in ("", ".", ".."):
            raise ValueError(f"Invalid MZIP artifact (file name {name!r})")
        target = os.path.join(output_dir, name)
        if os.path.exists(target) and not overwrite:
            raise FileExistsError(f"Refusing to overwrite {target}")

        os.makedirs(output_dir, exist_ok=True)
        with open(target, "wb") as out:
            out.write(data)
        return target
