"""GameMaker Language spec extractor.

Converts the vendor GmlSpec.xml (built-in functions, variables, constants)
into a normalized JSON document, with manual links resolved from
helpdocs_keywords.json.

Usage:
    python gmdoc.py > gml_builtins.json
    python gmdoc.py --spec-xml path/to/GmlSpec.xml --output gml_builtins.json
"""

import argparse
import json
import sys
import xml.etree.ElementTree as ET
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote, urlparse

PROJECT_ROOT = Path(__file__).parent
DEFAULT_SPEC_XML = PROJECT_ROOT / "GmlSpec.xml"
DEFAULT_LINK_TABLE = PROJECT_ROOT / "helpdocs_keywords.json"

DOCS_URL_TEMPLATE = "https://manual.yoyogames.com/{}.htm"
# Characters left unescaped in manual page fragments.
LINK_SAFE_CHARS = "/#?=&"

# The vendor file declares this pseudo-constant; it is not a real builtin.
IMPLICIT_ARGUMENT_NAME = "$$implicit_argument$$"


# ===--- CLI config contracts ---=== #


@dataclass(frozen=True)
class ExtractConfig:
    spec_xml: Path
    link_table: Path
    output: Path | None
    sort_by_name: bool


VALID_CONFIG_ERROR_CODES = {
    "PATH_NOT_FOUND",
    "INVALID_LINK_TABLE",
}


class ConfigError(Exception):
    def __init__(self, code: str, message: str, suggestion: str | None = None):
        if code not in VALID_CONFIG_ERROR_CODES:
            raise ValueError(f"Unknown config error code: {code}")
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion


def validate_path_exists(
    path: Path | None, flag: str, suggestion: str | None = None
) -> Path:
    if path is None:
        raise ConfigError(
            "PATH_NOT_FOUND",
            f"{flag} is required: no path provided.",
            suggestion or f"Pass the path explicitly: {flag} /path/to/resource",
        )
    if path.is_file():
        return path
    raise ConfigError(
        "PATH_NOT_FOUND",
        f"Path for {flag} does not exist: {path}",
        suggestion or "Provide an existing file for this flag.",
    )


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Extract GameMaker Language builtins from GmlSpec.xml as JSON"
    )

    parser.add_argument("--spec-xml", type=Path, default=DEFAULT_SPEC_XML)
    parser.add_argument("--link-table", type=Path, default=DEFAULT_LINK_TABLE)
    parser.add_argument("--output", type=Path, default=None)
    parser.add_argument("--sort-by-name", action="store_true", default=False)

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = build_argument_parser()
    return parser.parse_args(argv)


def validate_config(args: argparse.Namespace) -> ExtractConfig:
    spec_xml = validate_path_exists(
        args.spec_xml,
        "--spec-xml",
        "GmlSpec.xml ships with the GameMaker runtime, next to the compiler.\n"
        "Copy it into the project root or pass: --spec-xml /your/path/to/GmlSpec.xml",
    )
    link_table = validate_path_exists(
        args.link_table,
        "--link-table",
        "helpdocs_keywords.json ships with the GameMaker manual.\n"
        "Copy it into the project root or pass: --link-table /your/path/to/helpdocs_keywords.json",
    )
    return ExtractConfig(
        spec_xml=spec_xml,
        link_table=link_table,
        output=args.output,
        sort_by_name=bool(args.sort_by_name),
    )


def build_config(argv: list[str] | None = None) -> ExtractConfig:
    return validate_config(parse_args(argv))


# ===--- Data classes ---=== #


@dataclass(frozen=True)
class Parameter:
    parameter_name: str
    description: str
    gm_type: str
    optional: bool


@dataclass(frozen=True)
class Function:
    name: str
    parameters: tuple[Parameter, ...]
    description: str
    returns: str
    deprecated: bool
    pure: bool
    link: str | None


@dataclass(frozen=True)
class Variable:
    """A builtin variable.

    Attributes:
        get: Whether the variable is readable.
        set: Whether the variable is writable.
        instance: True for per-instance variables, False for globals.
        returns: The GML type tag of the variable.
    """

    name: str
    description: str
    deprecated: bool
    get: bool
    set: bool
    instance: bool
    returns: str
    link: str | None


@dataclass(frozen=True)
class Constant:
    """A builtin constant.

    ``class_`` is the optional namespace label from the Class= attribute.
    It serializes under the key "class".
    """

    name: str
    description: str
    returns: str
    class_: str | None
    deprecated: bool
    link: str | None


@dataclass(frozen=True)
class Program:
    """Everything extracted from one GmlSpec.xml.

    Each sequence is in document order unless the run asked for name order.
    """

    functions: tuple[Function, ...]
    variables: tuple[Variable, ...]
    constants: tuple[Constant, ...]


# ===--- Schema errors ---=== #


VALID_SPEC_ERROR_CODES = {
    "MISSING_ATTRIBUTE",
    "INVALID_BOOL",
    "MISSING_TEXT",
    "INVALID_LINK",
}


class SpecError(Exception):
    """GmlSpec.xml does not match the schema this extractor expects.

    Raised on the first violation. There is no per-record recovery: the
    extractor must be brought back in sync with the vendor file.
    """

    def __init__(
        self,
        code: str,
        message: str,
        tag: str | None = None,
        attribute: str | None = None,
    ):
        if code not in VALID_SPEC_ERROR_CODES:
            raise ValueError(f"Unknown spec error code: {code}")
        super().__init__(message)
        self.code = code
        self.message = message
        self.tag = tag
        self.attribute = attribute


def _describe_element(element: ET.Element) -> str:
    name = element.get("Name")
    if name is None:
        return f"<{element.tag}>"
    return f"<{element.tag} Name={name!r}>"


def require_attribute(element: ET.Element, attribute: str) -> str:
    value = element.get(attribute)
    if value is None:
        raise SpecError(
            "MISSING_ATTRIBUTE",
            f"{_describe_element(element)} is missing required attribute {attribute}",
            tag=element.tag,
            attribute=attribute,
        )
    return value


def parse_bool(raw: str) -> bool | None:
    """Parse the vendor file's boolean literals; None if not one of them."""
    if raw == "true":
        return True
    if raw == "false":
        return False
    return None


def require_bool(element: ET.Element, attribute: str) -> bool:
    raw = require_attribute(element, attribute)
    value = parse_bool(raw)
    if value is None:
        raise SpecError(
            "INVALID_BOOL",
            f"{_describe_element(element)} attribute {attribute}={raw!r} "
            "is not a boolean (expected 'true' or 'false')",
            tag=element.tag,
            attribute=attribute,
        )
    return value


def element_text(element: ET.Element) -> str:
    return element.text or ""


def require_text(element: ET.Element, owner: ET.Element) -> str:
    if not element.text:
        raise SpecError(
            "MISSING_TEXT",
            f"<{element.tag}> inside {_describe_element(owner)} has no text",
            tag=element.tag,
        )
    return element.text


# ===--- Link resolution ---=== #


def load_link_table(path: Path) -> dict[str, str]:
    """Load the name -> manual page fragment table.

    Args:
        path: helpdocs_keywords.json, a flat JSON object.

    Returns:
        The decoded table. Values are checked when a link is built.

    Raises:
        ConfigError: INVALID_LINK_TABLE if the file is not a UTF-8 JSON object.
        OSError: The file cannot be read.
    """
    try:
        table = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as err:
        raise ConfigError(
            "INVALID_LINK_TABLE",
            f"Link table is not valid UTF-8 JSON: {path} ({err})",
            "Pass the helpdocs_keywords.json shipped with the manual.",
        ) from err
    if not isinstance(table, dict):
        raise ConfigError(
            "INVALID_LINK_TABLE",
            f"Link table must be a JSON object, got {type(table).__name__}: {path}",
            "Pass the helpdocs_keywords.json shipped with the manual.",
        )
    return table


def resolve_link(name: str, link_table: Mapping[str, str]) -> str | None:
    """Return the manual URL for name, or None if the manual has no page.

    The fragment is percent-encoded before it is placed in the template, so
    page names with spaces or non-ASCII characters still produce a link.

    Raises:
        SpecError: INVALID_LINK if the table entry is not a string or cannot
            be encoded into a URL. That means the table itself is corrupt.
    """
    if name not in link_table:
        return None
    fragment = link_table[name]
    if not isinstance(fragment, str):
        raise SpecError(
            "INVALID_LINK",
            f"Link table entry for {name!r} is not a string: {fragment!r}",
        )
    try:
        url = DOCS_URL_TEMPLATE.format(quote(fragment, safe=LINK_SAFE_CHARS))
        urlparse(url)
    except ValueError as err:
        raise SpecError(
            "INVALID_LINK",
            f"Link table entry for {name!r} cannot be made into a URL: "
            f"{fragment!r} ({err})",
        ) from err
    return url


# ===--- XML extraction ---=== #


def extract_parameter(element: ET.Element) -> Parameter:
    return Parameter(
        parameter_name=require_attribute(element, "Name"),
        description=element_text(element),
        gm_type=require_attribute(element, "Type"),
        optional=require_bool(element, "Optional"),
    )


def extract_function(
    element: ET.Element, link_table: Mapping[str, str]
) -> Function:
    """Build a Function from a <Function> element.

    Description and Parameter elements are matched anywhere below the
    function, so wrapper elements between them are tolerated. The first
    Description wins; every Description must carry text.

    Args:
        element: The <Function> element.
        link_table: Name -> manual fragment table.

    Returns:
        The Function record, parameters in declaration order.

    Raises:
        SpecError: Missing or malformed attribute, empty Description, or a
            corrupt link table entry.
    """
    name = require_attribute(element, "Name")
    deprecated = require_bool(element, "Deprecated")
    pure = require_bool(element, "Pure")
    returns = require_attribute(element, "ReturnType")

    description: str | None = None
    parameters: list[Parameter] = []
    for sub in element.iter():
        if sub.tag == "Description":
            text = require_text(sub, element)
            if description is None:
                description = text
        elif sub.tag == "Parameter":
            parameters.append(extract_parameter(sub))

    return Function(
        name=name,
        parameters=tuple(parameters),
        description=description or "",
        returns=returns,
        deprecated=deprecated,
        pure=pure,
        link=resolve_link(name, link_table),
    )


def extract_variable(
    element: ET.Element, link_table: Mapping[str, str]
) -> Variable:
    name = require_attribute(element, "Name")
    gm_type = require_attribute(element, "Type")
    deprecated = require_bool(element, "Deprecated")
    get = require_bool(element, "Get")
    set_ = require_bool(element, "Set")
    instance = require_bool(element, "Instance")

    return Variable(
        name=name,
        description=element_text(element),
        deprecated=deprecated,
        get=get,
        set=set_,
        instance=instance,
        returns=gm_type,
        link=resolve_link(name, link_table),
    )


def extract_constant(
    element: ET.Element, link_table: Mapping[str, str]
) -> Constant | None:
    """Build a Constant, or return None for the implicit-argument sentinel."""
    name = require_attribute(element, "Name")
    if name == IMPLICIT_ARGUMENT_NAME:
        return None

    gm_type = require_attribute(element, "Type")
    deprecated = require_bool(element, "Deprecated")

    return Constant(
        name=name,
        description=element_text(element),
        returns=gm_type,
        class_=element.get("Class"),
        deprecated=deprecated,
        link=resolve_link(name, link_table),
    )


def extract_program(
    root: ET.Element,
    link_table: Mapping[str, str],
    sort_by_name: bool = False,
) -> Program:
    """Walk every element of the spec once and collect the builtins.

    Tags are matched by name at any depth, in document order. Structures
    and Enumerations sections are not supported and are passed over; any
    Function/Variable/Constant nested inside them is still picked up by the
    flat walk.

    Args:
        root: Root element of the parsed GmlSpec.xml.
        link_table: Name -> manual fragment table, see load_link_table.
        sort_by_name: Stable-sort each sequence by name instead of keeping
            document order.

    Returns:
        The assembled Program.

    Raises:
        SpecError: On the first schema violation. Nothing is returned.
    """
    functions: list[Function] = []
    variables: list[Variable] = []
    constants: list[Constant] = []

    for element in root.iter():
        tag = element.tag
        if tag == "Function":
            functions.append(extract_function(element, link_table))
        elif tag == "Variable":
            variables.append(extract_variable(element, link_table))
        elif tag == "Constant":
            constant = extract_constant(element, link_table)
            if constant is not None:
                constants.append(constant)

    if sort_by_name:
        functions.sort(key=lambda f: f.name)
        variables.sort(key=lambda v: v.name)
        constants.sort(key=lambda c: c.name)

    return Program(
        functions=tuple(functions),
        variables=tuple(variables),
        constants=tuple(constants),
    )


# ===--- Serialization ---=== #


def parameter_to_dict(parameter: Parameter) -> dict:
    return {
        "parameter_name": parameter.parameter_name,
        "description": parameter.description,
        "gm_type": parameter.gm_type,
        "optional": parameter.optional,
    }


def function_to_dict(function: Function) -> dict:
    return {
        "name": function.name,
        "parameters": [parameter_to_dict(p) for p in function.parameters],
        "description": function.description,
        "returns": function.returns,
        "deprecated": function.deprecated,
        "pure": function.pure,
        "link": function.link,
    }


def variable_to_dict(variable: Variable) -> dict:
    return {
        "name": variable.name,
        "description": variable.description,
        "deprecated": variable.deprecated,
        "get": variable.get,
        "set": variable.set,
        "instance": variable.instance,
        "returns": variable.returns,
        "link": variable.link,
    }


def constant_to_dict(constant: Constant) -> dict:
    return {
        "name": constant.name,
        "description": constant.description,
        "returns": constant.returns,
        "class": constant.class_,
        "deprecated": constant.deprecated,
        "link": constant.link,
    }


def program_to_dict(program: Program) -> dict:
    """Convert a Program to plain JSON-ready data.

    Keys follow the output document's field names, including "class" for
    Constant.class_. Key order is fixed so output is byte-stable.
    """
    return {
        "functions": [function_to_dict(f) for f in program.functions],
        "variables": [variable_to_dict(v) for v in program.variables],
        "constants": [constant_to_dict(c) for c in program.constants],
    }


def program_from_dict(data: Mapping) -> Program:
    """Rebuild a Program from a previously written document.

    Raises:
        KeyError: A required field is missing from the document.
    """
    return Program(
        functions=tuple(
            Function(
                name=f["name"],
                parameters=tuple(
                    Parameter(
                        parameter_name=p["parameter_name"],
                        description=p["description"],
                        gm_type=p["gm_type"],
                        optional=p["optional"],
                    )
                    for p in f["parameters"]
                ),
                description=f["description"],
                returns=f["returns"],
                deprecated=f["deprecated"],
                pure=f["pure"],
                link=f.get("link"),
            )
            for f in data["functions"]
        ),
        variables=tuple(
            Variable(
                name=v["name"],
                description=v["description"],
                deprecated=v["deprecated"],
                get=v["get"],
                set=v["set"],
                instance=v["instance"],
                returns=v["returns"],
                link=v.get("link"),
            )
            for v in data["variables"]
        ),
        constants=tuple(
            Constant(
                name=c["name"],
                description=c["description"],
                returns=c["returns"],
                class_=c.get("class"),
                deprecated=c["deprecated"],
                link=c.get("link"),
            )
            for c in data["constants"]
        ),
    )


def format_program_json(program: Program) -> str:
    """Render the Program as pretty-printed JSON with one trailing newline."""
    return json.dumps(program_to_dict(program), indent=2, ensure_ascii=False) + "\n"


# ===--- Summary report ---=== #


@dataclass(frozen=True)
class ExtractionSummary:
    """Counts reported after a successful run.

    Attributes:
        source_label: The spec file the counts came from.
        function_count: Functions in the output.
        parameter_count: Parameters across all functions.
        variable_count: Variables in the output.
        constant_count: Constants in the output.
        skipped_constant_count: Sentinel constants dropped from the output.
        linked_count: Records of any kind with a resolved manual link.
    """

    source_label: str
    function_count: int
    parameter_count: int
    variable_count: int
    constant_count: int
    skipped_constant_count: int
    linked_count: int


def count_skipped_constants(root: ET.Element) -> int:
    return sum(
        1
        for element in root.iter("Constant")
        if element.get("Name") == IMPLICIT_ARGUMENT_NAME
    )


def build_extraction_summary(
    source_label: str, program: Program, skipped_constant_count: int
) -> ExtractionSummary:
    records = (*program.functions, *program.variables, *program.constants)
    return ExtractionSummary(
        source_label=source_label,
        function_count=len(program.functions),
        parameter_count=sum(len(f.parameters) for f in program.functions),
        variable_count=len(program.variables),
        constant_count=len(program.constants),
        skipped_constant_count=skipped_constant_count,
        linked_count=sum(1 for r in records if r.link is not None),
    )


def format_extraction_summary(summary: ExtractionSummary) -> str:
    """Render the summary as console lines with one trailing newline.

    Args:
        summary: Assembled ExtractionSummary from build_extraction_summary.

    Returns:
        Formatted multi-line string including trailing newline.
    """
    lines = [
        f"  Source:    {summary.source_label}",
        f"  Extracted: {summary.function_count:,} functions "
        f"({summary.parameter_count:,} parameters), "
        f"{summary.variable_count:,} variables, "
        f"{summary.constant_count:,} constants "
        f"({summary.skipped_constant_count:,} skipped)",
        f"  Linked:    {summary.linked_count:,} records",
    ]
    return "\n".join(lines) + "\n"


def print_extraction_summary(summary: ExtractionSummary) -> None:
    print(format_extraction_summary(summary), end="", file=sys.stderr)


# ===--- Pipeline ---=== #


def run_extract(config: ExtractConfig) -> Program:
    """Parse the spec, extract the Program and write the JSON document.

    The document is rendered completely before anything is written, so a
    failing run leaves stdout and the --output file untouched.

    Args:
        config: Validated ExtractConfig from build_config.

    Returns:
        The extracted Program.

    Raises:
        OSError: An input file is unreadable or the output is unwritable.
        ET.ParseError: GmlSpec.xml is not well-formed XML.
        ConfigError: The link table is not a JSON object.
        SpecError: GmlSpec.xml violates the expected schema.
    """
    print(f"Parsing: {config.spec_xml}", file=sys.stderr)
    root = ET.parse(config.spec_xml).getroot()
    link_table = load_link_table(config.link_table)

    program = extract_program(root, link_table, sort_by_name=config.sort_by_name)
    document = format_program_json(program)

    if config.output is None:
        sys.stdout.write(document)
    else:
        config.output.parent.mkdir(parents=True, exist_ok=True)
        config.output.write_text(document, encoding="utf-8")

    summary = build_extraction_summary(
        str(config.spec_xml), program, count_skipped_constants(root)
    )
    print_extraction_summary(summary)
    return program


# ===--- Main ---=== #


def main():
    try:
        config = build_config()
        run_extract(config)
    except ConfigError as err:
        print(f"Config error [{err.code}]: {err.message}", file=sys.stderr)
        if err.suggestion:
            print(f"Hint: {err.suggestion}", file=sys.stderr)
        raise SystemExit(1) from err
    except SpecError as err:
        print(f"Spec error [{err.code}]: {err.message}", file=sys.stderr)
        raise SystemExit(1) from err
    except (OSError, ET.ParseError) as err:
        print(f"Error: {err}", file=sys.stderr)
        raise SystemExit(1) from err


if __name__ == "__main__":
    main()
