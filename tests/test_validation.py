import pytest

from vroom_express.config import AppConfig, ServerConfig, SolverConfig
from vroom_express.validation import (
    RoutingRequestError, check_content_length, parse_body, validate_request
)


def _config(**solver_fields) -> AppConfig:
    return AppConfig(solver=SolverConfig(**solver_fields), server=ServerConfig(max_body_bytes=64))


def _rejection(payload, config=None) -> RoutingRequestError:
    with pytest.raises(RoutingRequestError) as excinfo:
        validate_request(payload, config or _config())
    return excinfo.value


def test_valid_request_is_parsed(problem: dict):
    request = validate_request({**problem, "routeId": "r-1", "batchId": 7}, _config())

    assert request.location_count == 2
    assert request.identifiers() == {"routeId": "r-1", "batchId": 7}
    # unknown keys are kept for the solver
    assert request.model_extra == {}
    assert validate_request({**problem, "custom": 1}, _config()).model_extra == {"custom": 1}


def test_missing_jobs_and_shipments_is_input_error():
    error = _rejection({"vehicles": [{"id": 1}]})

    assert error.status_code == 400
    assert error.code == 2
    assert "jobs or shipments" in error.message


def test_missing_vehicles_is_input_error():
    error = _rejection({"jobs": [{"id": 1}]})

    assert error.status_code == 400
    assert "vehicles" in error.message


@pytest.mark.parametrize("payload", [[], "vehicles", 3, None])
def test_non_object_payload_is_input_error(payload):
    assert _rejection(payload).status_code == 400


def test_wrongly_typed_collections_are_input_errors():
    error = _rejection({"vehicles": {"id": 1}, "jobs": [{"id": 1}]})

    assert error.status_code == 400
    assert error.code == 2


def test_shipments_count_twice_against_location_limit():
    payload = {
        "vehicles": [{"id": 1}],
        "jobs": [{"id": 1}],
        "shipments": [{"amount": [1]}, {"amount": [1]}],
    }
    assert validate_request(payload, _config(max_locations=5)).location_count == 5

    error = _rejection(payload, _config(max_locations=4))
    assert error.status_code == 413
    assert error.code == 4
    assert error.message == "Too many locations (5) in query, maximum is set to 4"


def test_too_many_vehicles():
    payload = {"vehicles": [{"id": i} for i in range(3)], "jobs": [{"id": 1}]}

    error = _rejection(payload, _config(max_vehicles=2))
    assert error.status_code == 413
    assert error.message == "Too many vehicles (3) in query, maximum is set to 2"


def test_parse_body_rejects_invalid_json():
    with pytest.raises(RoutingRequestError) as excinfo:
        parse_body(b"{not json", _config())

    assert excinfo.value.status_code == 400
    assert excinfo.value.code == 2


def test_parse_body_enforces_size_limit():
    with pytest.raises(RoutingRequestError) as excinfo:
        parse_body(b"[" + b"1," * 40 + b"1]", _config())

    assert excinfo.value.status_code == 413
    assert excinfo.value.code == 4


def test_parse_body_returns_decoded_json():
    assert parse_body(b'{"vehicles": []}', _config()) == {"vehicles": []}


def test_declared_content_length_is_checked_before_reading():
    with pytest.raises(RoutingRequestError) as excinfo:
        check_content_length("1000", _config())

    assert excinfo.value.status_code == 413
    assert excinfo.value.code == 4


@pytest.mark.parametrize("header", [None, "64", "", "chunked"])
def test_small_or_missing_content_length_passes(header):
    check_content_length(header, _config())
