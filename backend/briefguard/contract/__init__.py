from briefguard.contract.enforce import ContractViolationError, enforce_output_contract
from briefguard.contract.normalize import normalize_output_payload
from briefguard.contract.schema import StructuredOutput, parse_model_json, validate_structured_output

__all__ = [
    "ContractViolationError",
    "StructuredOutput",
    "enforce_output_contract",
    "normalize_output_payload",
    "parse_model_json",
    "validate_structured_output",
]
