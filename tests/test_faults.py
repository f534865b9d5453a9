"""
Tests for the fault taxonomy.
"""

import pytest

from stacksmith.faults import (
    AlreadyInitializedFault,
    BaseMismatchFault,
    ConfigInvalidFault,
    CyclicDependencyFault,
    DiscoveryLoadFault,
    Fault,
    FaultDomain,
    InitializerNotImplementedFault,
    InvalidArgumentFault,
    Severity,
)


class TestFault:

    def test_requires_code_message_and_domain(self):
        with pytest.raises(TypeError):
            Fault(code="X", message="missing domain")

    def test_str_includes_code(self):
        fault = Fault(code="SOMETHING", message="went wrong", domain=FaultDomain.RESOLUTION)
        assert str(fault) == "[SOMETHING] went wrong"
        assert fault.severity is Severity.ERROR
        assert fault.retryable is False

    def test_domain_default_severity(self):
        fault = DiscoveryLoadFault("/infra/a.py", "SyntaxError")
        assert fault.domain == FaultDomain.DISCOVERY
        assert fault.severity is Severity.FATAL

    def test_to_dict(self):
        try:
            try:
                raise KeyError("region")
            except KeyError as exc:
                raise ConfigInvalidFault("props", "bad region") from exc
        except ConfigInvalidFault as fault:
            data = fault.to_dict()

        assert data["code"] == "CONFIG_INVALID"
        assert data["domain"] == "config"
        assert data["metadata"] == {"key": "props", "reason": "bad region"}
        assert "KeyError" in data["cause"]


class TestConcreteFaults:

    def test_invalid_argument_is_value_error(self):
        fault = InvalidArgumentFault("Invalid scope", argument="scope", value=None)
        assert isinstance(fault, ValueError)
        assert fault.code == "INVALID_ARGUMENT"
        assert fault.metadata == {"argument": "scope", "value": "None"}

    def test_not_implemented_is_not_implemented_error(self):
        fault = InitializerNotImplementedFault("Table")
        assert isinstance(fault, NotImplementedError)
        assert fault.severity is Severity.FATAL

    def test_already_initialized_metadata(self):
        fault = AlreadyInitializedFault("table", "dev", "resolved")
        assert fault.metadata["state"] == "resolved"
        assert "[dev]" in fault.message

    def test_base_mismatch_segment(self):
        fault = BaseMismatchFault("/a/x", "/a/b/c", 2)
        assert fault.code == "ROUTE_BASE_MISMATCH"
        assert fault.metadata["segment"] == 2

    def test_cycle_message_closes_the_loop(self):
        fault = CyclicDependencyFault(["a", "b"])
        assert "a -> b -> a" in fault.message
        assert fault.to_dict()["metadata"]["cycle"] == ["a", "b"]
