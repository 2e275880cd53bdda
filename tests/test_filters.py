"""Test the noise filter and content normalizer."""

import pytest

from newsletter_brief.tools.content_normalizer import extract_content, strip_html_tags
from newsletter_brief.tools.noise_filter import is_noise

from conftest import make_message


@pytest.mark.parametrize(
    "subject",
    [
        "You have been unsubscribed",
        "Subscription Confirmed",
        "Your preferences updated",
        "Successfully removed from list",
        "Please confirm your email",
        "Welcome to the Morning Brew newsletter",
        "You've been added to the list",
        "Manage your subscription",
    ],
)
def test_admin_subjects_are_noise(subject: str) -> None:
    assert is_noise(subject)


@pytest.mark.parametrize(
    "subject",
    ["The Daily Brief: Markets rally", "Welcome back, here is your digest", ""],
)
def test_newsletter_subjects_are_not_noise(subject: str) -> None:
    assert not is_noise(subject)


def test_plain_body_preferred_when_long_enough() -> None:
    body = "x" * 600
    message = make_message("m1", body=body, html_body="<p>html version</p>")
    assert extract_content(message) == body


def test_short_plain_body_falls_back_to_html() -> None:
    message = make_message(
        "m1",
        body="short",
        html_body="<style>p{}</style><p>Hello&nbsp;<b>world</b> &amp; friends</p>",
    )
    assert extract_content(message) == "Hello world & friends"


def test_short_body_without_html_is_returned_as_is() -> None:
    message = make_message("m1", body="short")
    assert extract_content(message) == "short"


def test_content_is_truncated_to_max_length() -> None:
    message = make_message("m1", body="y" * 30000)
    assert len(extract_content(message)) == 25000


def test_strip_html_tags_removes_scripts_and_decodes_entities() -> None:
    html = "<html><script>var a = 1;</script><div>A &lt;b&gt; &quot;c&quot; &#39;d&#39;</div>\n\n<p>e</p></html>"
    assert strip_html_tags(html) == "A <b> \"c\" 'd' e"


def test_strip_html_tags_leaves_unknown_entities() -> None:
    assert strip_html_tags("<p>&copy; 2024</p>") == "&copy; 2024"
