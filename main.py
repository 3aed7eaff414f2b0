import argparse
import os
import shutil
import sys

from wp_lektor.exceptions import ExportError, PackagingError
from wp_lektor.exporter import ExportOptions, LektorExport
from wp_lektor.wxr import WxrRepository


def build_parser():
    parser = argparse.ArgumentParser(
        description="Export a WordPress WXR file and its uploads to a Lektor project"
    )
    parser.add_argument("xml_file", help="Path to WordPress XML export file (.wxr)")
    parser.add_argument("--uploads-dir", help="Local copy of wp-content/uploads to mirror")
    parser.add_argument(
        "-o",
        "--output",
        default="lektor-export.zip",
        help="Where to save the zip file; '-' writes it to stdout",
    )
    parser.add_argument("--post-types", nargs="+", default=["post", "page"], help="List of post types to include (space-separated)")
    parser.add_argument("--exclude-custom-fields", nargs="+", help="List of custom fields to exclude (space-separated, wildcards allowed)")
    parser.add_argument("--convert-to-markdown", action="store_true", help="Convert HTML content to Markdown")
    parser.add_argument("--site-config", action="store_true", help="Also write the site name, description and url to _config.yml")
    parser.add_argument("--no-zip", action="store_true", help="Leave the export directory on disk instead of zipping it")
    parser.add_argument("--keep", action="store_true", help="Keep the temporary export directory after zipping")
    parser.add_argument("--strict", action="store_true", help="Abort on the first item that cannot be exported")
    parser.add_argument("--temp-dir", help="Directory in which the export directory is created")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    to_stdout = args.output == "-"

    options = ExportOptions(
        post_types=args.post_types,
        temp_root=args.temp_dir,
        package=not args.no_zip,
        convert_to_markdown=args.convert_to_markdown,
        site_config=args.site_config,
        excluded_custom_fields=args.exclude_custom_fields,
        strict=args.strict,
        quiet=to_stdout,
    )

    try:
        repository = WxrRepository(args.xml_file, uploads_dir=args.uploads_dir)
        exporter = LektorExport(repository, options=options)
        result = exporter.export()
    except PackagingError as e:
        print(f"Error: {e}", file=sys.stderr)
        print(f"The export directory was kept at {e.directory}", file=sys.stderr)
        sys.exit(1)
    except ExportError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if not options.package:
        print(result.directory)
        return

    try:
        if to_stdout:
            exporter.send(sys.stdout.buffer)
        else:
            shutil.copyfile(result.archive, args.output)
            print(f"Lektor export saved to {os.path.abspath(args.output)}.")
    except OSError as e:
        print(f"Error writing the zip file: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        if not args.keep:
            exporter.cleanup()


if __name__ == "__main__":
    main()
