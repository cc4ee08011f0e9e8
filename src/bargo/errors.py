from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple


class BargoError(Exception):
    def __init__(self, message: str, suggestions: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.message = message
        self.suggestions: List[str] = list(suggestions)

    def add_suggestions(self, suggestions: Iterable[str]) -> "BargoError":
        for suggestion in suggestions:
            if suggestion not in self.suggestions:
                self.suggestions.append(suggestion)
        return self

    def render(self) -> str:
        lines = [f"❌ {self.message}"]
        if self.suggestions:
            lines.append("")
            lines.append("💡 Suggestions:")
            lines.extend(f"   • {suggestion}" for suggestion in self.suggestions)
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.message


class MissingArtifactError(BargoError):
    def __init__(self, paths: Sequence[Path], suggestions: Sequence[str] = ()) -> None:
        self.paths = [Path(path) for path in paths]
        joined = ", ".join(str(path) for path in self.paths)
        super().__init__(f"Required files are missing: {joined}", suggestions)


class ToolExecutionError(BargoError):
    def __init__(
        self,
        command: str,
        exit_code: Optional[int],
        stdout: str = "",
        stderr: str = "",
        suggestions: Sequence[str] = (),
    ) -> None:
        self.command = command
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        if exit_code is None:
            message = f"Failed to execute command '{command}': {stderr.strip()}"
        else:
            message = (
                f"Command '{command}' failed with exit code {exit_code}\n"
                f"Stdout: {stdout}\nStderr: {stderr}"
            )
        super().__init__(message, suggestions)


class ConfigurationError(BargoError):
    pass


class ParseError(BargoError):
    pass


# (required substrings, suggestions); every substring must appear in the message.
SUGGESTION_TABLE: List[Tuple[Tuple[str, ...], Tuple[str, ...]]] = [
    (
        ("Required files are missing", ".json"),
        (
            "Run `bargo build` to generate bytecode and witness files",
            "Check if you're in the correct Noir project directory",
            "Verify that Nargo.toml exists in the current directory",
        ),
    ),
    (
        ("Required files are missing", ".gz"),
        (
            "Run `bargo build` to generate bytecode and witness files",
            "Check if you're in the correct Noir project directory",
        ),
    ),
    (
        ("Required files are missing", "proof"),
        (
            "Run `bargo <backend> prove` to generate proof and verification key",
            "Check if the proving step completed successfully",
            "Try running `bargo clean` and rebuilding from scratch",
        ),
    ),
    (
        ("Required files are missing", "calldata"),
        ("Run `bargo <backend> calldata` to generate calldata",),
    ),
    (
        ("Could not find Nargo.toml",),
        (
            "Make sure you're in a Noir project directory",
            "Initialize a new project with `nargo new <project_name>`",
            "Check if you're in a subdirectory - try running from the project root",
        ),
    ),
    (
        ("Failed to parse Nargo.toml",),
        (
            "Check Nargo.toml syntax - it should be valid TOML format",
            "Ensure the [package] section has a 'name' field",
        ),
    ),
    (
        ("'nargo'", "No such file"),
        (
            "Install nargo: `curl -L https://raw.githubusercontent.com/noir-lang/noirup/main/install | bash`",
            "Verify installation with `nargo --version`",
        ),
    ),
    (
        ("'bb'", "No such file"),
        (
            "Install bb (Barretenberg) with `bbup`",
            "Verify installation with `bb --version`",
        ),
    ),
    (
        ("'garaga'", "No such file"),
        ("Install garaga: `pip install garaga`",),
    ),
    (
        ("'forge'", "No such file"),
        (
            "Install Foundry: `curl -L https://foundry.paradigm.xyz | bash && foundryup`",
            "Verify: forge --version && cast --version",
        ),
    ),
    (
        ("'cast'", "No such file"),
        ("Install Foundry: `curl -L https://foundry.paradigm.xyz | bash && foundryup`",),
    ),
    (
        ("'starkli'", "No such file"),
        ("Install starkli: `curl https://get.starkli.sh | sh && starkliup`",),
    ),
    (
        ("environment variable not found",),
        ("Ensure the env file is present in the project root and readable",),
    ),
]


def suggestions_for(message: str) -> List[str]:
    found: List[str] = []
    for needles, suggestions in SUGGESTION_TABLE:
        if all(needle in message for needle in needles):
            for suggestion in suggestions:
                if suggestion not in found:
                    found.append(suggestion)
    return found


def enhance_error(error: BargoError) -> BargoError:
    text = error.message
    if isinstance(error, ToolExecutionError):
        text = f"{text}\n{error.stderr}"
    return error.add_suggestions(suggestions_for(text))
