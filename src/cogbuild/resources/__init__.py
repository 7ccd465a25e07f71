# Package data: the release build drops cog-0.0.1.dev-py3-none-any.whl here.
