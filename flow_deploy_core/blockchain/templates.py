"""Cadence transaction templates for managing account contracts."""

from typing import Any, Final

from . import cadence

ADD_CONTRACT_TEMPLATE: Final = """transaction(name: String, code: String{params}) {{
	prepare(signer: AuthAccount) {{
		signer.contracts.add(name: name, code: code.decodeHex(){args})
	}}
}}"""

UPDATE_CONTRACT_TEMPLATE: Final = """transaction(name: String, code: String) {
	prepare(signer: AuthAccount) {
		signer.contracts.update__experimental(name: name, code: code.decodeHex())
	}
}"""

REMOVE_CONTRACT_TEMPLATE: Final = """transaction(name: String) {
	prepare(signer: AuthAccount) {
		signer.contracts.remove(name: name)
	}
}"""


def initializer_parameters(args: list[dict[str, Any]]) -> tuple[str, str]:
    """Extra transaction parameters and call arguments for contract init args.

    Raises:
        ValueError: If an argument type cannot be declared as a parameter
    """
    params = "".join(
        f", arg{i}: {cadence.type_name(arg)}" for i, arg in enumerate(args)
    )
    call_args = "".join(f", arg{i}" for i in range(len(args)))
    return params, call_args


def add_contract(
    name: str, code: str, args: list[dict[str, Any]] | None = None
) -> tuple[str, list[dict[str, Any]]]:
    """Script and arguments of a transaction adding a contract."""
    args = list(args or [])
    params, call_args = initializer_parameters(args)
    script = ADD_CONTRACT_TEMPLATE.format(params=params, args=call_args)
    return script, [cadence.string(name), cadence.string(code.encode().hex()), *args]


def update_contract(name: str, code: str) -> tuple[str, list[dict[str, Any]]]:
    """Script and arguments of a transaction updating a contract."""
    return UPDATE_CONTRACT_TEMPLATE, [
        cadence.string(name),
        cadence.string(code.encode().hex()),
    ]


def remove_contract(name: str) -> tuple[str, list[dict[str, Any]]]:
    """Script and arguments of a transaction removing a contract."""
    return REMOVE_CONTRACT_TEMPLATE, [cadence.string(name)]
