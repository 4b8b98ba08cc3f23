from conftest import make_visit

from lifetrail.deckbuilder import build_deck_payload
from lifetrail.models import CountryVisit, LocationHistory
from lifetrail.session import Session
from lifetrail.template.renderer import render_html


def _inline_script(page):
    start = page.index("<script>") + len("<script>")
    return page[start:page.index("</script>", start)]


def test_free_text_cannot_close_the_inline_script(history):
    hostile = make_visit((-79.38, 43.65), history.metadata.min_timestamp + 60, place_name="Bar </script><b>x</b>")
    tainted = LocationHistory(
        visits=list(history.visits) + [hostile],
        trips=history.trips,
        arcs=history.arcs,
        metadata=history.metadata,
    )
    page = render_html(
        build_deck_payload(Session(tainted)),
        ["visits"],
        [CountryVisit(name="<i>Nowhere</i>", code="XX", flag="", visits=1, days=1)],
        map_style="Dark Matter",
        subtitle="<img src=x>",
    )
    assert "</script><b>" not in page
    script = _inline_script(page)
    assert "const visible" in script
    assert "Bar <\\/script><b>x<\\/b>" in script
    assert "&lt;img src=x&gt;" in page
    assert "&lt;i&gt;Nowhere&lt;/i&gt;" in page
    assert "<img src=x>" not in page


def test_static_paths_are_drawn_while_paused(history):
    page = render_html(build_deck_payload(Session(history)), ["trips"], [], map_style="Voyager", subtitle="")
    assert "payload.staticPaths" in page
    assert "payload.staticPathColor" in page
    assert '"https:\\/\\/' not in page
    assert '"https://basemaps.cartocdn.com/gl/voyager-gl-style/style.json"' in page
