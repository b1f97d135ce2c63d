SAMPLE_MARKDOWN = """# Welcome to WriteOnly

A minimal Markdown editor with live preview.

## Features

- **Live Preview**: See your formatted text instantly
- *Simple Interface*: Focus on writing
- `Syntax Highlighting`: Minimal highlighting in the editor

## Code Example

```python
def greet(name):
    return f"Hello, {name}!"
```

## Links

Check out [GitHub](https://github.com) for more projects.

> "The best writing is rewriting." - E.B. White

---

### Getting Started

1. Write your markdown in the left panel
2. See the live preview on the right
3. Enjoy distraction-free writing!
"""
