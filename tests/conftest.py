import pytest

from config import Settings


@pytest.fixture
def settings(tmp_path):
    static_dir = tmp_path / "public"
    static_dir.mkdir()
    (static_dir / "index.html").write_text("<html>attendance app</html>", encoding="utf-8")
    (static_dir / "styles.css").write_text("body {}", encoding="utf-8")
    return Settings(
        twilio_whatsapp_number="whatsapp:+14155238886",
        twilio_join_code="bright-river",
        static_dir=static_dir,
    )
