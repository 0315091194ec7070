"""Writing SSA text, producing assembly and building executables."""

from __future__ import annotations

import platform
import subprocess
import sys
from pathlib import Path
from typing import Sequence, Union

from c33.ssa import SsaGen
from c33.tree import CompilationUnit

PathLike = Union[str, Path]


class CodegenError(Exception):
    """Raised when assembly generation, linking or running fails."""


def write_ssa(unit: CompilationUnit, filename: PathLike) -> None:
    """Write the SSA text of ``unit`` to ``filename``."""
    ssa = unit.accept(SsaGen())
    with open(filename, "w", encoding="utf-8", newline="") as out:
        out.write(ssa)


def _default_target() -> str:
    machine = platform.machine().lower()
    arm = machine in ("arm64", "aarch64")
    if sys.platform == "darwin":
        return "arm64_apple" if arm else "amd64_apple"
    if arm:
        return "arm64"
    if machine == "riscv64":
        return "rv64"
    return "amd64_sysv"


def generate_assembly(srcfile: PathLike, unit: CompilationUnit, asmfile: PathLike) -> None:
    """Translate ``unit`` to assembly for the host and write it to ``asmfile``."""
    ssa = SsaGen().visit_compilation_unit(unit)
    try:
        result = subprocess.run(
            ["qbe", "-t", _default_target(), "-"],
            input=ssa.encode("utf-8"),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            check=False,
        )
    except OSError as exc:
        raise CodegenError(f"{srcfile}: cannot run qbe: {exc}") from exc
    if result.returncode != 0:
        message = result.stderr.decode("utf-8", errors="replace").strip()
        raise CodegenError(f"{srcfile}: {message or f'exit status {result.returncode}'}")
    Path(asmfile).write_bytes(result.stdout)


def _run_combined(command: Sequence[str], what: str) -> str:
    """Run ``command`` and return its combined output; raise CodegenError on failure."""
    try:
        result = subprocess.run(
            list(command), stdout=subprocess.PIPE, stderr=subprocess.STDOUT, check=False
        )
    except OSError as exc:
        raise CodegenError(f"{what} failed: : {exc}") from exc
    output = result.stdout.decode("utf-8", errors="replace")
    if result.returncode != 0:
        raise CodegenError(f"{what} failed: {output}: exit status {result.returncode}")
    return output


def compile_program(asm: PathLike, binary: PathLike, run: bool) -> None:
    """Assemble and link ``asm`` into ``binary``; optionally run it and show its output."""
    _run_combined(["cc", "-o", str(binary), str(asm)], "cc")
    if run:
        output = _run_combined([str(binary)], "run")
        if output:
            print(f"run output:\n{output}")