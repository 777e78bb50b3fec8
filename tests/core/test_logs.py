from datafinder.core.logs import LogBuffer


def test_log_buffer_redacts_api_key_query_value() -> None:
    buffer = LogBuffer()
    entry = buffer.record("request", "POST http://api/qdf.php?k2=abcdef123456&service=email")
    assert "k2=ab…56" in entry.message
    assert "abcdef123456" not in entry.message


def test_log_buffer_redacts_registered_secrets() -> None:
    buffer = LogBuffer()
    buffer.add_secret("longsecretvalue")
    entry = buffer.record("error", "key longsecretvalue rejected")
    assert entry.message == "key lo…ue rejected"


def test_log_buffer_ignores_short_secrets() -> None:
    buffer = LogBuffer()
    buffer.add_secret("tiny")
    entry = buffer.record("error", "tiny key tinyfied")
    assert entry.message == "tiny key tinyfied"


def test_log_buffer_redaction_can_be_disabled() -> None:
    buffer = LogBuffer(redaction_enabled=False)
    entry = buffer.record("request", "k2=abcdef123456")
    assert entry.message == "k2=abcdef123456"


def test_log_buffer_recent_filters_and_limits() -> None:
    buffer = LogBuffer(max_entries=5)
    buffer.record("retry", "r1")
    buffer.record("error", "e1")
    buffer.record("retry", "r2")
    buffer.record("response", "200 {}")
    recent_retry = buffer.recent(category="retry", limit=5)
    assert [entry.message for entry in recent_retry] == ["r1", "r2"]
    latest = buffer.latest()
    assert latest is not None and latest.message == "200 {}"
    buffer.clear()
    assert len(buffer) == 0


def test_log_buffer_normalizes_invalid_inputs() -> None:
    buffer = LogBuffer()
    entry = buffer.record("custom", "message", severity="verbose")
    assert entry.category == "system"
    assert entry.severity == "info"


def test_log_buffer_notifies_subscribers() -> None:
    buffer = LogBuffer()
    seen: list[str] = []
    buffer.subscribe(lambda entry: seen.append(entry.message))
    buffer.record("system", "hello")
    assert seen == ["hello"]
