from __future__ import annotations

import pytest

from recipe_keeper.domain.errors import InsufficientContentError
from recipe_keeper.services.content_reducer import ContentReducer, profile_for, strip_noise_sentences

RECIPE_TEXT = (
    "Składniki: 500 g mąki, 250 ml ciepłej wody, szczypta soli, 1 kg ziemniaków, 250 g twarogu, 2 cebule. "
    "Ziemniaki ugotuj i przeciśnij przez praskę. Wymieszaj z twarogiem i zeszkloną cebulą. "
    "Zagnieć ciasto, rozwałkuj i wykrawaj krążki."
)

PAGE = f"""
<html>
<head>
  <title>Pierogi ruskie | Ania Gotuje</title>
  <meta property="og:image" content="/img/pierogi.jpg">
  <style>.x {{ color: red }}</style>
</head>
<body>
  <nav>Strona główna Przepisy Kontakt</nav>
  <!-- tracking pixel -->
  <script>var tracking = "ZZZ";</script>
  <div class="post-content">
    <h1>Pierogi ruskie</h1>
    <p>{RECIPE_TEXT}</p>
    <p>Zapisz się na nasz newsletter i bądź na bieżąco! Smacznego.</p>
    <div class="comments-area">Komentarze czytelników: super przepis</div>
  </div>
  <footer>Copyright Ania Gotuje</footer>
</body>
</html>
"""


def test_reduce_keeps_recipe_text_and_drops_noise() -> None:
    out = ContentReducer().reduce(PAGE, "https://www.aniagotuje.pl/przepis/pierogi-ruskie")

    assert "Ziemniaki ugotuj" in out.text
    assert "Pierogi ruskie" in out.text
    assert "Strona główna" not in out.text
    assert "ZZZ" not in out.text
    assert "color" not in out.text
    assert "Copyright" not in out.text
    assert "super przepis" not in out.text
    assert "newsletter" not in out.text
    assert "Smacznego." in out.text
    assert "  " not in out.text


def test_reduce_reports_title_and_absolute_image() -> None:
    out = ContentReducer().reduce(PAGE, "https://aniagotuje.pl/przepis/pierogi-ruskie")
    assert out.title == "Pierogi ruskie | Ania Gotuje"
    assert out.image_url == "https://aniagotuje.pl/img/pierogi.jpg"


def test_reduce_falls_back_to_body_without_preferred_region() -> None:
    html = f"<html><body><div><p>{RECIPE_TEXT}</p></div></body></html>"
    out = ContentReducer().reduce(html, "https://example.org/przepis")
    assert out.text.startswith("Składniki:")
    assert out.image_url is None


def test_short_content_is_rejected() -> None:
    html = "<html><body><article><p>Za mało treści.</p></article></body></html>"
    with pytest.raises(InsufficientContentError) as exc:
        ContentReducer().reduce(html, "https://kwestiasmaku.com/przepis")
    assert exc.value.status_code == 422


def test_strip_noise_sentences_is_case_insensitive() -> None:
    text = "Dodaj sól. Udostępnij na FACEBOOK! Piecz 40 minut."
    assert strip_noise_sentences(text) == "Dodaj sól. Piecz 40 minut."


def test_profile_lookup_ignores_www_prefix() -> None:
    assert profile_for("https://www.kwestiasmaku.com/a") is profile_for("https://kwestiasmaku.com/b")
    assert ".entry-content" in profile_for("https://kwestiasmaku.com/b").content_selectors


def test_article_header_title_is_kept() -> None:
    html = f"<html><body><article><header><h1>Pierogi ruskie</h1></header><p>{RECIPE_TEXT}</p></article></body></html>"
    out = ContentReducer().reduce(html, "https://example.org/przepis")
    assert out.text.startswith("Pierogi ruskie")
