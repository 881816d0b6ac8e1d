"""Top-level pytest configuration.

The plugin itself is loaded through its ``pytest11`` entry point once the
package is installed, so it is not listed here. Listing it as well would
register the same module twice.
"""

# Enable pytester fixture for internal tests only (not installed runtime).
pytest_plugins = ["pytester"]
