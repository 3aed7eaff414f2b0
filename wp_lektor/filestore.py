import os
import shutil
import tempfile


class LocalFileStore:
    """Filesystem operations used by the exporter, on the local disk."""

    def is_writable(self, path: str) -> bool:
        return os.path.isdir(path) and os.access(path, os.W_OK | os.X_OK)

    def make_temp_dir(self, root: str, prefix: str) -> str:
        return tempfile.mkdtemp(prefix=prefix, dir=root)

    def mkdir(self, path: str) -> None:
        os.makedirs(path, exist_ok=True)

    def exists(self, path: str) -> bool:
        return os.path.lexists(path)

    def is_file(self, path: str) -> bool:
        return os.path.isfile(path)

    def is_dir(self, path: str) -> bool:
        return os.path.isdir(path)

    def walk_files(self, root: str):
        """Yield every file or link below ``root`` in sorted order, without following directory links."""
        for folder, dirs, files in os.walk(root):
            dirs.sort()
            for name in sorted(files):
                yield os.path.join(folder, name)

    def open_binary(self, path: str, mode: str = "rb"):
        return open(path, mode)

    def put_contents(self, path: str, contents: str) -> None:
        self.mkdir(os.path.dirname(path))
        with open(path, "w", encoding="utf-8") as outfile:
            outfile.write(contents)

    def copy(self, source: str, dest: str) -> None:
        self.mkdir(os.path.dirname(dest))
        shutil.copyfile(source, dest)

    def copy_recursive(self, source: str, dest: str, on_error=None) -> None:
        """
        Copy a file, or recursively copy a folder and its contents.

        Symbolic links are recreated as links pointing at the same target
        rather than followed.

        Args:
            source: Source path
            dest: Destination path
            on_error: Called with (path, exception) for an entry that cannot be
                copied; the copy then carries on. Without it the error is raised.
        """
        try:
            if os.path.islink(source):
                os.symlink(os.readlink(source), dest)
                return

            if os.path.isfile(source):
                self.copy(source, dest)
                return

            self.mkdir(dest)
            entries = sorted(os.listdir(source))
        except OSError as e:
            if on_error is None:
                raise
            on_error(source, e)
            return

        for entry in entries:
            self.copy_recursive(
                os.path.join(source, entry), os.path.join(dest, entry), on_error
            )

    def delete(self, path: str) -> None:
        if os.path.islink(path) or os.path.isfile(path):
            os.remove(path)
        elif os.path.isdir(path):
            shutil.rmtree(path)
