from datetime import timedelta

import pytest

from intentnet.pipeline import (
    EnrichmentStage,
    FilteringStage,
    Pipeline,
    PipelineConfig,
    SignatureStage,
    TransformationStage,
    ValidationStage,
    default_pipeline_config,
)
from intentnet.types import (
    DEFAULT_TTL,
    PRIORITY_LOW,
    PRIORITY_URGENT,
    ErrorCode,
    Intent,
    IntentError,
)


class Validator:
    def __init__(self, error=None):
        self.error = error
        self.seen = []

    def validate_intent(self, intent):
        self.seen.append(intent.id)
        if self.error is not None:
            raise self.error


class Signer:
    def __init__(self):
        self.calls = 0

    def verify_signature(self, intent):
        self.calls += 1


class CountingStage:
    def __init__(self, name, priority, failures=0):
        self.name = name
        self.priority = priority
        self.failures = failures
        self.calls = 0

    def process(self, intent):
        self.calls += 1
        if self.calls <= self.failures:
            raise RuntimeError("boom")

    def should_process(self, intent):
        return True


class Rule:
    def __init__(self, name, allow=True, error=None):
        self.name = name
        self.allow = allow
        self.error = error

    def should_allow(self, intent):
        if self.error is not None:
            raise self.error
        return self.allow


class Upper:
    name = "upper"

    def transform(self, intent):
        intent.payload = intent.payload.upper()


def fast_config(retries=0):
    return PipelineConfig(
        stage_timeout=timedelta(seconds=10),
        pipeline_timeout=timedelta(seconds=60),
        max_retries=retries,
    )


def test_default_pipeline_config():
    config = default_pipeline_config()
    assert config.stage_timeout == timedelta(seconds=10)
    assert config.pipeline_timeout == timedelta(seconds=60)
    assert config.max_retries == 3
    assert config.enable_async is True


def test_stages_sorted_by_priority():
    pipeline = Pipeline(fast_config())
    pipeline.add_stage(FilteringStage())
    pipeline.add_stage(EnrichmentStage())
    pipeline.add_stage(ValidationStage(Validator()))
    pipeline.add_stage(TransformationStage())
    pipeline.add_stage(SignatureStage(Signer()))
    names = [stage.name for stage in pipeline.stages()]
    assert names == ["validation", "signature", "enrichment", "transformation", "filtering"]
    assert pipeline.stats()["stage_names"] == names


def test_stats_reports_config():
    pipeline = Pipeline(fast_config(retries=2))
    pipeline.add_stage(EnrichmentStage())
    stats = pipeline.stats()
    assert stats["total_stages"] == 1
    assert stats["max_retries"] == 2
    assert stats["async_enabled"] is False
    assert stats["stage_timeout"] == str(timedelta(seconds=10))


def test_stages_returns_copy():
    pipeline = Pipeline(fast_config())
    pipeline.add_stage(EnrichmentStage())
    pipeline.stages().clear()
    assert len(pipeline.stages()) == 1


def test_process_none_raises_invalid_format():
    with pytest.raises(IntentError) as info:
        Pipeline(fast_config()).process(None)
    assert info.value.code is ErrorCode.INVALID_FORMAT


def test_process_without_stages_leaves_intent_untouched():
    intent = Intent(id="i1", type="Trade")
    Pipeline(fast_config()).process(intent)
    assert intent.type == "Trade"
    assert intent.metadata is None


def test_validation_runs_for_every_intent():
    validator = Validator()
    pipeline = Pipeline(fast_config())
    pipeline.add_stage(ValidationStage(validator))
    pipeline.process(Intent(id="i1"))
    assert validator.seen == ["i1"]


def test_validation_failure_is_wrapped():
    pipeline = Pipeline(fast_config())
    pipeline.add_stage(ValidationStage(Validator(ValueError("bad"))))
    with pytest.raises(IntentError) as info:
        pipeline.process(Intent(id="i1"))
    assert info.value.code is ErrorCode.PROCESSING_FAILED
    assert "Stage 'validation' failed at position 0" in info.value.message
    assert isinstance(info.value.__cause__, ValueError)


def test_unsigned_intent_skips_signature_and_nothing_processed():
    signer = Signer()
    pipeline = Pipeline(fast_config())
    pipeline.add_stage(SignatureStage(signer))
    with pytest.raises(IntentError) as info:
        pipeline.process(Intent(id="i1", type="trade"))
    assert signer.calls == 0
    assert info.value.message == "No pipeline stages processed the intent"


def test_signed_intent_is_verified():
    signer = Signer()
    pipeline = Pipeline(fast_config())
    pipeline.add_stage(SignatureStage(signer))
    pipeline.process(Intent(id="i1", signature=b"sig"))
    assert signer.calls == 1


def test_retry_until_success():
    stage = CountingStage("flaky", 10, failures=1)
    pipeline = Pipeline(fast_config(retries=1))
    pipeline.add_stage(stage)
    pipeline.process(Intent(id="i1"))
    assert stage.calls == 2


def test_retries_exhausted_raises():
    stage = CountingStage("broken", 10, failures=100)
    pipeline = Pipeline(fast_config(retries=1))
    pipeline.add_stage(stage)
    with pytest.raises(IntentError) as info:
        pipeline.process(Intent(id="i1"))
    assert stage.calls == 2
    assert isinstance(info.value.__cause__, RuntimeError)


def test_stage_timeout_stops_retries():
    stage = CountingStage("broken", 10, failures=100)
    config = PipelineConfig(
        stage_timeout=timedelta(0),
        pipeline_timeout=timedelta(seconds=60),
        max_retries=5,
    )
    pipeline = Pipeline(config)
    pipeline.add_stage(stage)
    with pytest.raises(IntentError) as info:
        pipeline.process(Intent(id="i1"))
    assert stage.calls == 1
    assert isinstance(info.value.__cause__, TimeoutError)


def test_enrichment_sets_metadata_and_timestamp():
    intent = Intent(id="i1")
    EnrichmentStage().process(intent)
    assert intent.processed_at > 0
    assert intent.metadata["processed_by"] == "pipeline"
    assert intent.metadata["processing_stage"] == "enrichment"
    assert "enriched_at" in intent.metadata


def test_enrichment_keeps_existing_timestamp():
    intent = Intent(id="i1", processed_at=42, metadata={"keep": "yes"})
    EnrichmentStage().process(intent)
    assert intent.processed_at == 42
    assert intent.metadata["keep"] == "yes"


@pytest.mark.parametrize(
    ("priority", "expected"),
    [(-5, PRIORITY_LOW), (PRIORITY_URGENT + 5, PRIORITY_URGENT), (5, 5)],
)
def test_transformation_clamps_priority(priority, expected):
    intent = Intent(type="Trade", priority=priority)
    TransformationStage().process(intent)
    assert intent.priority == expected
    assert intent.type == "trade"


def test_transformation_sets_default_ttl_only_when_unset():
    unset = Intent(type="x", priority=5)
    kept = Intent(type="x", priority=5, ttl=99)
    stage = TransformationStage()
    stage.process(unset)
    stage.process(kept)
    assert unset.ttl == int(DEFAULT_TTL.total_seconds())
    assert kept.ttl == 99


def test_transformation_applies_type_transformer():
    stage = TransformationStage()
    stage.add_transformer("Swap", Upper())
    intent = Intent(type="Swap", payload=b"abc", priority=5)
    stage.process(intent)
    assert intent.payload == b"ABC"
    assert intent.type == "swap"


def test_filtering_only_runs_with_filters():
    stage = FilteringStage()
    assert stage.should_process(Intent()) is False
    stage.add_filter(Rule("allow"))
    assert stage.should_process(Intent()) is True


def test_filter_rejection_raises():
    stage = FilteringStage()
    stage.add_filter(Rule("allow"))
    stage.add_filter(Rule("deny", allow=False))
    with pytest.raises(IntentError) as info:
        stage.process(Intent(id="i9"))
    assert info.value.message == "Intent filtered out by 'deny'"
    assert info.value.details == "i9"


def test_filter_error_is_wrapped():
    stage = FilteringStage()
    stage.add_filter(Rule("crash", error=KeyError("k")))
    with pytest.raises(IntentError) as info:
        stage.process(Intent(id="i1"))
    assert info.value.message == "Filter 'crash' failed"
    assert isinstance(info.value.__cause__, KeyError)


def test_full_pipeline_normalises_intent():
    pipeline = Pipeline(fast_config())
    pipeline.add_stage(ValidationStage(Validator()))
    pipeline.add_stage(EnrichmentStage())
    pipeline.add_stage(TransformationStage())
    pipeline.add_stage(FilteringStage())
    intent = Intent(id="i1", type="TRADE", priority=0)
    pipeline.process(intent)
    assert intent.type == "trade"
    assert intent.priority == PRIORITY_LOW
    assert intent.metadata["processed_by"] == "pipeline"