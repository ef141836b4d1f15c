import pytest

from vibecode.pipeline.artifacts import build_generated_file, extract_code


def test_fenced_block_with_language():
    text = "Here you go:\n```python\nprint('hi')\n```\nEnjoy!"

    generated = build_generated_file(text)

    assert generated.path == "src/AiGenerated.py"
    assert generated.filename == "AiGenerated.py"
    assert generated.language == "python"
    assert generated.content == "print('hi')\n"


def test_plain_text_defaults_to_javascript():
    generated = build_generated_file("  const x = 1;  \n")

    assert generated.path == "src/AiGenerated.js"
    assert generated.language == "javascript"
    assert generated.content == "const x = 1;"


@pytest.mark.parametrize("tag", ["cpp", "kotlin", "brainfuck"])
def test_unknown_fence_tag_saved_as_plain_text(tag):
    generated = build_generated_file(f"```{tag}\n+++.\n```")

    assert generated.path == "src/AiGenerated.txt"
    assert generated.language == "plaintext"
    assert generated.content == "+++.\n"


def test_untagged_fence_defaults_to_javascript():
    generated = build_generated_file("```\nconst y = 2;\n```")
    assert generated.path == "src/AiGenerated.js"
    assert generated.language == "javascript"


def test_first_block_wins():
    content, tag = extract_code("```ts\nlet a = 1\n```\n\n```css\nbody {}\n```")
    assert tag == "ts"
    assert content == "let a = 1\n"


def test_unterminated_fence():
    content, tag = extract_code("```html\n<p>cut off")
    assert tag == "html"
    assert content == "<p>cut off\n"
