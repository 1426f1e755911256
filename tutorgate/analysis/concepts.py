"""Keyword scans that tag an explanation with concepts and examples.

Cheap, local, and independent of the upstream provider, so every explained
snippet gets the same tags whichever provider wins the race.
"""

from __future__ import annotations


def extract_concepts(code: str) -> list[str]:
    """Return the programming concepts a snippet appears to use."""
    concepts: list[str] = []
    lowered = code.lower()

    if "list" in lowered or "[]" in code or "append" in lowered:
        concepts.append("Lists")
    if "dict" in lowered or "{}" in code or "keys" in lowered:
        concepts.append("Dictionaries")
    if "set" in lowered or ("{" in code and "}" in code and "dict" not in lowered):
        concepts.append("Sets")
    if "tuple" in lowered or "()" in code:
        concepts.append("Tuples")
    if "class" in lowered:
        concepts.append("Object-Oriented Programming")
    if "def" in lowered or "lambda" in lowered:
        concepts.append("Functions")
    if "for" in lowered or "while" in lowered:
        concepts.append("Loops")
    if "if" in lowered or "else" in lowered or "elif" in lowered:
        concepts.append("Conditional Statements")

    return concepts or ["General Programming"]


def generate_examples(code: str) -> list[str]:
    """Return short illustrative snippets for the containers a snippet uses."""
    examples: list[str] = []
    lowered = code.lower()

    if "list" in lowered:
        examples.append("my_list = [1, 2, 3]\nmy_list.append(4)  # Adds 4 to the list")
    if "dict" in lowered:
        examples.append(
            "my_dict = {'name': 'Alice', 'age': 30}\n"
            "print(my_dict['name'])  # Outputs: Alice"
        )
    if "set" in lowered:
        examples.append("my_set = {1, 2, 3}\nmy_set.add(4)  # Adds 4 to the set")

    return examples or ["Run the code to see how it works!"]
