"""scenecompose — declarative scene composition.

Describe a visual composition as three decoupled JSON documents (data,
layout template, theme) and render it deterministically to HTML and CSS.
Scenes can also be built step by step from an ordered list of operations
declared in a YAML manifest.
"""
