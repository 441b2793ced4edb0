"""Page title to file name conversion.

Logseq stores namespaced pages ("Cardiology/Arrhythmia") as flat files with
the namespace separator replaced by a triple underscore
("Cardiology___Arrhythmia.md").
"""

import os

NAMESPACE_SEPARATOR = "/"
FILE_NAMESPACE_SEPARATOR = "___"
PAGE_EXTENSION = ".md"


class PageNaming:
    """Converts between page titles and page file names.

    Examples:
        - "Foo" <-> "Foo.md"
        - "Cardiology/Arrhythmia" <-> "Cardiology___Arrhythmia.md"
        - "1.2.3" <-> "1.2.3.md"
    """

    @staticmethod
    def title_to_filename(title: str, extension: str = PAGE_EXTENSION) -> str:
        """Convert a page title to its file name.

        Args:
            title: Page title

        Returns:
            File name with extension

        Raises:
            ValueError: If the title is empty
        """
        if not title or not title.strip():
            raise ValueError("Page title cannot be empty")
        return title.replace(NAMESPACE_SEPARATOR, FILE_NAMESPACE_SEPARATOR) + extension

    @staticmethod
    def filename_to_title(filename: str) -> str:
        """Convert a page file name (or path) back to its title.

        Args:
            filename: File name or path, with extension

        Returns:
            Page title
        """
        stem, _ = os.path.splitext(os.path.basename(filename))
        return stem.replace(FILE_NAMESPACE_SEPARATOR, NAMESPACE_SEPARATOR)
