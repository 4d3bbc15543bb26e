"""
Renders a PackageDescriptor as a Homebrew formula and reads one back.

Only the statements a descriptor can express are understood: version, desc,
homepage, url, sha256 and the `<dir>.install` lines of `def install`.
"""

import re
from urllib.parse import urlsplit
from typing import Any, Dict, List, Optional

from formulary.descriptor_models import InstallStep, PackageDescriptor
from formulary.formulary_exceptions import DescriptorError

# Formula path helpers that map onto a directory of the same name under the prefix
FORMULA_DIRECTORIES = ("bin", "sbin", "lib", "libexec", "include", "share", "etc")

_STRING = r"""(?:"((?:[^"\\]|\\.)*)"|'([^']*)')"""
_CLASS_RE = re.compile(r"^\s*class\s+(\w+)\s*<\s*Formula\b", re.MULTILINE)
_INSTALL_BLOCK_RE = re.compile(r"^\s*def\s+install\b(.*?)^\s*end\b", re.MULTILINE | re.DOTALL)
_INSTALL_LINE_RE = re.compile(
    r"^\s*(?:(\w+)|\(\s*prefix\s*/\s*" + _STRING + r"\s*\))\.install\s+" + _STRING
    + r"(?:\s*=>\s*" + _STRING + r")?\s*$",
    re.MULTILINE,
)


def _statement_re(keyword: str) -> "re.Pattern[str]":
    return re.compile(r"^\s*" + keyword + r"\s+" + _STRING + r"\s*$", re.MULTILINE)


def _ruby_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("#{", "\\#{")
    return f'"{escaped}"'


def _unescape(double_quoted: Optional[str], single_quoted: Optional[str]) -> Optional[str]:
    if double_quoted is not None:
        return re.sub(r"\\(.)", r"\1", double_quoted)
    return single_quoted


def class_name(package_name: str) -> str:
    """terminal-guitar-tuner -> TerminalGuitarTuner"""
    return "".join(part.capitalize() for part in re.split(r"[-_.@+]", package_name) if part)


def package_name(formula_class: str) -> str:
    """TerminalGuitarTuner -> terminal-guitar-tuner"""
    return re.sub(r"(?<!^)(?=[A-Z])", "-", formula_class).lower()


def _install_line(step: InstallStep) -> str:
    if step.destination in FORMULA_DIRECTORIES:
        target = step.destination
    else:
        target = f"(prefix/{_ruby_string(step.destination)})"
    line = f"    {target}.install {_ruby_string(step.source)}"
    if step.target_name:
        line += f" => {_ruby_string(step.target_name)}"
    return line


def render_formula(descriptor: PackageDescriptor) -> str:
    """
    Render a descriptor as the Ruby source of a Homebrew formula.
    URL tokens become Ruby interpolations (#{version}, #{name}).
    Raises DescriptorError for descriptors a formula cannot carry: a name that does not
    survive the class name conversion, or an archive type the URL suffix does not imply.
    """
    if package_name(class_name(descriptor.name)) != descriptor.name:
        raise DescriptorError(f"Package name {descriptor.name} cannot be written as a formula class name")
    if _archive_type(descriptor.url) != descriptor.archive_type:
        raise DescriptorError(
            f"Archive type {descriptor.archive_type} of {descriptor.name} is not implied by its url {descriptor.url}"
        )

    url = _ruby_string(descriptor.url)
    url = url.replace("{version}", "#{version}").replace("{name}", "#{name}")

    lines = [
        f"class {class_name(descriptor.name)} < Formula",
        f"  version {_ruby_string(descriptor.version)}",
    ]
    if descriptor.description:
        lines.append(f"  desc {_ruby_string(descriptor.description)}")
    if descriptor.homepage:
        lines.append(f"  homepage {_ruby_string(descriptor.homepage)}")
    lines.append(f"  url {url}")
    lines.append(f"  sha256 {_ruby_string(descriptor.checksum)}")
    lines.append("")
    lines.append("  def install")
    lines.extend(_install_line(step) for step in descriptor.install_steps)
    lines.append("  end")
    lines.append("end")
    return "\n".join(lines) + "\n"


def _archive_type(url: str) -> str:
    path = urlsplit(url).path
    if path.endswith(".zip"):
        return "zip"
    if path.endswith(".tgz"):
        return "tgz"
    if path.endswith(".tar"):
        return "tar"
    return "tar.gz"


def parse_formula(text: str) -> PackageDescriptor:
    """
    Build a descriptor from the Ruby source of a Homebrew formula.
    Raises DescriptorError if the class, url, sha256, version or install lines are missing.
    """
    class_match = _CLASS_RE.search(text)
    if not class_match:
        raise DescriptorError("No Formula class found")

    data: Dict[str, Any] = {"name": package_name(class_match.group(1))}
    for keyword, key in (
        ("version", "version"),
        ("desc", "desc"),
        ("homepage", "homepage"),
        ("url", "url"),
        ("sha256", "checksum"),
    ):
        match = _statement_re(keyword).search(text)
        if match:
            data[key] = _unescape(match.group(1), match.group(2))

    for keyword, key in (("version", "version"), ("url", "url"), ("sha256", "checksum")):
        if key not in data:
            raise DescriptorError(f"Formula {data['name']} has no {keyword} statement")

    data["url"] = data["url"].replace("#{version}", "{version}").replace("#{name}", "{name}")
    data["archiveType"] = _archive_type(data["url"])

    block = _INSTALL_BLOCK_RE.search(text)
    steps: List[Dict[str, str]] = []
    if block:
        for match in _INSTALL_LINE_RE.finditer(block.group(1)):
            directory, prefix_dq, prefix_sq, source_dq, source_sq, name_dq, name_sq = match.groups()
            step = {
                "source": _unescape(source_dq, source_sq),
                "destination": directory or _unescape(prefix_dq, prefix_sq),
            }
            target_name = _unescape(name_dq, name_sq)
            if target_name:
                step["targetName"] = target_name
            steps.append(step)
    if not steps:
        raise DescriptorError(f"Formula {data['name']} has no install lines")
    data["installSteps"] = steps

    return PackageDescriptor.from_dict(data)
