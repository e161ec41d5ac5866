"""Shared fixtures for core unit tests"""

import pytest


SAMPLE_MD = """\
# Heading 1

A paragraph with **bold** text.

## Heading 2

- item one
- item two

```python
print("hello")
```

> Quoted line.
"""


@pytest.fixture(name="sample_md")
def sample_md_fixture():
    return SAMPLE_MD
