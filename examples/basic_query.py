#!/usr/bin/env python3
"""
Basic query example showing how xmlnav selects nodes from a tree.

This example demonstrates:
- Building a small document with the testing fixtures
- Selecting elements and attributes with query_all/query
- Scalar evaluation and namespace bindings
"""

import sys
from pathlib import Path

# Add parent directory to path for development
sys.path.insert(0, str(Path(__file__).parent.parent))

from xmlnav import CompileOptions, evaluate, query, query_all
from xmlnav.testing import sample_document


def main():
    """Run a few queries against the sample catalogue."""
    doc = sample_document()

    print("Books:")
    print("-" * 50)
    for book in query_all(doc, "//book"):
        title = book.select_element("title").inner_text()
        print(f"  {book.select_attr('id')}: {title}")

    expensive = query(doc, "//book[price > 20]/title")
    print(f"\nMost expensive: {expensive.inner_text()}")

    ids = [attr.inner_text() for attr in query_all(doc, "//book/@id")]
    print(f"Ids: {', '.join(ids)}")

    total = evaluate(doc, "sum(//price)")
    print(f"Total price: {total}")

    # Prefixes bound here are matched by namespace URI
    options = CompileOptions(namespaces={"meta": "urn:x"})
    note = query(doc, "//meta:note", options)
    print(f"Note kind: {note.select_attr('x:kind')}")


if __name__ == "__main__":
    main()
