import os
import shutil
import sys
import tempfile
import zipfile
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Dict, List, Optional

import yaml

from .content import render_content
from .exceptions import (
    ItemExportError,
    MediaCopyError,
    OutputNotWritableError,
    PackagingError,
)
from .filestore import LocalFileStore
from .models import ContentItem, ExportResult
from .normalize import is_private_key, normalize
from .paths import BLOG_DIR, resolve_output_path
from .serializer import serialize
from .source import ContentRepository
from .wxr import maybe_unserialize

ZIP_FOLDER = "lektor-export"  # folder the zip file extracts to
UPLOADS_DIR = "wp-content/uploads"
RUN_PREFIX = "wp-lektor-"

RENAME_OPTIONS = ["site", "blog"]  # prefixes stripped from option keys
SITE_OPTIONS = ["name", "description", "url"]  # options written to _config.yml


@dataclass
class ExportOptions:
    post_types: List[str] = field(default_factory=lambda: ["post", "page"])
    temp_root: Optional[str] = None
    package: bool = True
    convert_to_markdown: bool = False
    site_config: bool = False
    excluded_custom_fields: Optional[List[str]] = None
    strict: bool = False
    quiet: bool = False


@dataclass
class ExportContext:
    """Everything one export run needs, built once and handed to each stage."""

    repository: ContentRepository
    filestore: LocalFileStore
    options: ExportOptions
    home_url: str = ""


def rename_key(options: Dict[str, Any], old: str, new: str) -> Dict[str, Any]:
    """Rename a key without changing the order of the mapping."""
    if old not in options:
        return options
    return {(new if key == old else key): value for key, value in options.items()}


class LektorExport:
    """
    Exports a WordPress site into a Lektor project tree and zips it.

    Args:
        repository: Content source to read from
        filestore: File operations backend
        options: Export settings
    """

    def __init__(
        self,
        repository: ContentRepository,
        filestore: Optional[LocalFileStore] = None,
        options: Optional[ExportOptions] = None,
    ):
        self.context = ExportContext(
            repository=repository,
            filestore=filestore or LocalFileStore(),
            options=options or ExportOptions(),
            home_url=repository.home_url(),
        )
        self.dir: Optional[str] = None
        self.zip_path: Optional[str] = None
        self.exported: List[int] = []
        self.skipped: List[int] = []

    @property
    def repository(self) -> ContentRepository:
        return self.context.repository

    @property
    def filestore(self) -> LocalFileStore:
        return self.context.filestore

    @property
    def options(self) -> ExportOptions:
        return self.context.options

    def log(self, message: str) -> None:
        if not self.options.quiet:
            print(message)

    def warn(self, message: str) -> None:
        sys.stderr.write(f"Warning: {message}\n")

    def init_temp_dir(self) -> str:
        """Create a fresh run directory with the ``blog`` and ``wp-content`` folders."""
        temp_root = self.options.temp_root or tempfile.gettempdir()
        if not self.filestore.is_writable(temp_root):
            raise OutputNotWritableError(
                f"Lektor export requires {temp_root} to be writable"
            )

        try:
            self.dir = self.filestore.make_temp_dir(temp_root, RUN_PREFIX)
            self.zip_path = self.dir + ".zip"
            self.filestore.mkdir(os.path.join(self.dir, "wp-content"))
            self.filestore.mkdir(os.path.join(self.dir, BLOG_DIR))
        except OSError as e:
            raise OutputNotWritableError(f"Cannot create export directory: {e}") from e
        return self.dir

    def get_posts(self) -> List[int]:
        """Ids of all published items of the configured post types, ascending."""
        return self.repository.get_posts(self.options.post_types, status="publish")

    def convert_meta(self, item: ContentItem) -> Dict[str, Any]:
        featured_image_url = None
        if item.featured_image:
            featured_image_url = self.repository.attachment_url(item.featured_image)
        return normalize(
            item,
            home_url=self.context.home_url,
            taxonomies=self.repository.taxonomies_for(item.post_type),
            featured_image_url=featured_image_url,
            excluded_custom_fields=self.options.excluded_custom_fields,
        )

    def output_path(self, item: ContentItem) -> str:
        ancestors = []
        if item.post_type == "page":
            ancestors = [parent.slug for parent in self.repository.ancestors(item)]
        return str(resolve_output_path(item, ancestors))

    def convert_post(self, item: ContentItem) -> str:
        """Write one item's ``contents.lr`` and return its path relative to the run directory."""
        if not item.slug:
            raise ItemExportError(item.id, "missing slug")
        if item.post_type not in ("post", "page") and item.date is None:
            raise ItemExportError(item.id, "missing publish date")

        meta = self.convert_meta(item)
        body = render_content(item.content, self.options.convert_to_markdown)
        relative_path = self.output_path(item)
        self.write(serialize(meta, body), relative_path)

        if "featured_image" in meta:
            try:
                self.copy_featured_image(item, relative_path, meta["featured_image"])
            except MediaCopyError as e:
                self.warn(str(e))
        return relative_path

    def convert_posts(self) -> None:
        """Loop through all eligible items and write them with their front matter."""
        for post_id in self.get_posts():
            try:
                item = self.repository.get_post(post_id)
                self.convert_post(item)
            except ItemExportError as e:
                if self.options.strict:
                    raise
                self.warn(f"Skipping {e}")
                self.skipped.append(post_id)
                continue
            self.exported.append(post_id)
        self.log(f"Exported {len(self.exported)} items, skipped {len(self.skipped)}.")

    def write(self, output: str, relative_path: str) -> None:
        self.filestore.put_contents(os.path.join(self.dir, relative_path), output)

    def copy_featured_image(
        self, item: ContentItem, relative_path: str, filename: str
    ) -> None:
        """Copy the featured image next to the item's contents file."""
        source = self.repository.attachment_path(item.featured_image)
        if not source or not self.filestore.is_file(source):
            raise MediaCopyError(
                f"featured image for item {item.id} not found: {source or filename}"
            )
        dest = os.path.join(self.dir, os.path.dirname(relative_path), filename)
        try:
            self.filestore.copy(source, dest)
        except OSError as e:
            raise MediaCopyError(f"cannot copy featured image {source}: {e}") from e

    def convert_uploads(self) -> None:
        """Mirror the uploads directory into ``wp-content/uploads``."""
        source = self.repository.uploads_dir
        if not source:
            return
        if not self.filestore.is_dir(source):
            self.warn(f"uploads directory {source} not found, skipping media")
            return

        def on_error(path, error):
            self.warn(f"cannot copy {path}: {error}")

        dest = os.path.join(self.dir, UPLOADS_DIR)
        self.filestore.copy_recursive(source, dest, on_error=on_error)

    def site_config(self) -> Dict[str, Any]:
        options = {}
        for key, value in self.repository.site_options().items():
            if is_private_key(key):
                continue
            options[key] = maybe_unserialize(value)

        # strip site and blog from key names, since they become site. in Lektor
        for key in list(options):
            for prefix in RENAME_OPTIONS:
                if key.startswith(prefix):
                    options = rename_key(options, key, key[len(prefix):])
                    break

        return {key: value for key, value in options.items() if key in SITE_OPTIONS}

    def convert_options(self) -> None:
        """Write the site's name, description and url to ``_config.yml``."""
        output = yaml.dump(
            self.site_config(),
            allow_unicode=True,
            default_flow_style=False,
            sort_keys=False,
        )
        self.filestore.put_contents(os.path.join(self.dir, "_config.yml"), output)

    def zip(self) -> str:
        """Zip the run directory; entries extract into ``lektor-export/``."""
        try:
            with self.filestore.open_binary(self.zip_path, "wb") as handle, zipfile.ZipFile(
                handle, "w", zipfile.ZIP_DEFLATED
            ) as archive:
                for path in self.filestore.walk_files(self.dir):
                    if not self.filestore.is_file(path):
                        self.warn(f"skipping broken link {path}")
                        continue
                    relative = os.path.relpath(path, self.dir)
                    with self.filestore.open_binary(path) as source, archive.open(
                        os.path.join(ZIP_FOLDER, relative), "w"
                    ) as target:
                        shutil.copyfileobj(source, target)
        except (OSError, ValueError) as e:
            if self.filestore.exists(self.zip_path):
                self.filestore.delete(self.zip_path)
            raise PackagingError(f"Cannot create {self.zip_path}: {e}", self.dir) from e
        return self.zip_path

    def send(self, stream: BinaryIO) -> None:
        """Write the zip file to a binary stream."""
        with self.filestore.open_binary(self.zip_path) as archive:
            shutil.copyfileobj(archive, stream)
        stream.flush()

    def cleanup(self) -> None:
        """Remove the run directory and the zip file."""
        for path in (self.dir, self.zip_path):
            if path and self.filestore.exists(path):
                self.filestore.delete(path)

    def export(self) -> ExportResult:
        """
        Main function: bootstraps, converts and packages.

        Any failure before packaging removes the run directory. A packaging
        failure keeps it so the exported tree can still be used.

        Returns:
            The run directory, the archive (when packaging) and the item ids
            exported and skipped
        """
        try:
            self.init_temp_dir()
            self.log(f"Exporting to {self.dir}...")
            if self.options.site_config:
                self.convert_options()
            self.convert_posts()
            self.convert_uploads()
        except BaseException:
            self.cleanup()
            raise

        archive = None
        if self.options.package:
            archive = self.zip()
            self.log(f"Archive written to {archive}.")

        return ExportResult(
            directory=self.dir,
            archive=archive,
            exported=list(self.exported),
            skipped=list(self.skipped),
        )
