import pytest

from earnout_tee.errors import ClassificationError, InternalError, SigningError, ValidationError
from earnout_tee.service import ComputeService


class RecordingAttester:
    """Attester double that records whether it was asked to sign."""

    def __init__(self, inner):
        self.inner = inner
        self.calls = 0

    @property
    def public_key(self):
        return self.inner.public_key

    def attest(self, kpi_result, documents):
        self.calls += 1
        return self.inner.attest(kpi_result, documents)


class ExplodingAttester(RecordingAttester):
    def attest(self, kpi_result, documents):
        raise RuntimeError("boom")


@pytest.mark.parametrize("documents", [[], None, {"grossPay": 1}, "docs"])
def test_invalid_documents_rejected_for_both_operations(service, documents):
    with pytest.raises(ValidationError):
        service.compute_simple(documents)
    with pytest.raises(ValidationError):
        service.compute_with_attestation(documents)


def test_simple_scenario(service, documents):
    assert service.compute_simple(documents, 0).kpi == 3000000


def test_attested_scenario(service, documents):
    attested = service.compute_with_attestation(documents)
    assert attested.kpi_result.kpi == 3000000
    assert attested.attestation.kpi_value == 3000000
    assert len(attested.attestation_bytes) == 144


def test_attested_path_ignores_initial_kpi(service, documents):
    data = service.compute(documents, "with_attestation", initial_kpi=999)
    assert data["attestation"]["kpi_value"] == 30000
    assert data["kpi_result"]["kpi"] == 30000


def test_simple_initial_kpi_parsed(service, documents):
    data = service.compute(documents, "simple", initial_kpi="-0.5")
    assert data["kpi_result"]["kpi_minor_units"] == 3000000 - 50
    assert "attestation" not in data


def test_bad_initial_kpi(service, documents):
    with pytest.raises(ValidationError):
        service.compute(documents, "simple", initial_kpi="lots")


def test_unknown_operation(service, documents):
    with pytest.raises(ValidationError):
        service.compute(documents, "estimate")


def test_classification_failure_issues_no_attestation(attester, documents):
    recording = RecordingAttester(attester)
    service = ComputeService(recording)
    batch = [documents[0], {"reportTitle": "Unknown"}, documents[1]]
    with pytest.raises(ClassificationError) as exc:
        service.compute_with_attestation(batch)
    assert exc.value.index == 1
    assert recording.calls == 0


def test_missing_attester_fails_attested_request(documents):
    service = ComputeService()
    assert service.compute_simple(documents).kpi == 3000000
    with pytest.raises(SigningError):
        service.compute_with_attestation(documents)
    with pytest.raises(SigningError):
        service.compute(documents, "with_attestation")


def test_unexpected_failure_wrapped(attester, documents):
    service = ComputeService(ExplodingAttester(attester))
    with pytest.raises(InternalError) as exc:
        service.compute(documents)
    assert isinstance(exc.value.cause, RuntimeError)
    assert "boom" not in exc.value.message


def test_huge_amount_is_classification_error(service):
    with pytest.raises(ClassificationError) as exc:
        service.compute([{"grossPay": "1e30"}], "simple")
    assert exc.value.index == 0


@pytest.mark.parametrize("initial_kpi", ["1e30", 10 ** 30, "-1e999999"])
def test_huge_initial_kpi_is_validation_error(service, documents, initial_kpi):
    with pytest.raises(ValidationError):
        service.compute(documents, "simple", initial_kpi=initial_kpi)


def test_kpi_overflow_is_validation_error(service):
    largest = {"grossPay": "92233720368547758.07"}
    with pytest.raises(ValidationError):
        service.compute([largest, largest], "with_attestation")


def test_classification_reported_before_missing_attester(documents):
    service = ComputeService()
    with pytest.raises(ClassificationError) as exc:
        service.compute_with_attestation([documents[0], {"mystery": 1}])
    assert exc.value.index == 1
