import os
import sys
import stat
import time
import hashlib
import argparse
from collections import defaultdict
from dataclasses import dataclass
from tqdm import tqdm
import pandas as pd

# =====================================================
# ================= CONFIGURATION =====================
# =====================================================
VIDEO_EXTENSIONS = (".mp4", ".mov", ".avi", ".mkv", ".3gp", ".wmv", ".mts")
CHUNK_SIZE = 8192
TABLE_WIDTH = 65
EXIT_DELAY = 3             # seconds to wait before exiting on bad input
DRY_RUN = False            # ⚠️ Set to True to prevent file deletion


@dataclass
class DeletionSummary:
    deleted: int = 0
    skipped: int = 0
    failed: int = 0
    bytes_freed: int = 0


# =====================================================
# ==================== UTILITY FUNCTIONS =============
# =====================================================

def get_file_hash(filepath, chunk_size=CHUNK_SIZE):
    """Compute exact file hash for duplicates.

    Raises OSError if the file cannot be read.
    """
    hasher = hashlib.md5()
    with open(filepath, 'rb') as f:
        while chunk := f.read(chunk_size):
            hasher.update(chunk)
    return hasher.hexdigest()


def human_readable_size(n):
    """Convert a size in bytes to B, KB, MB..."""
    n = float(n)
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if n < 1024.0:
            return f"{n:.0f} {unit}" if unit == 'B' else f"{n:.1f} {unit}"
        n /= 1024.0
    return f"{n:.1f} PB"


def confirm(prompt):
    """Ask a y/n question; only 'y' or 'Y' counts as yes"""
    try:
        answer = input(prompt)
    except EOFError:
        print()
        return False
    return answer.strip() in ("y", "Y")


def get_valid_directory(prompt_text, existing_path=None):
    """Return the absolute directory to scan, or None if there isn't one"""
    path = existing_path
    if not path:
        try:
            path = input(prompt_text)
        except EOFError:
            path = ""
        path = path.strip().strip('"')
    if not path:
        print("No directory path provided. Exiting.")
        return None
    path = os.path.abspath(os.path.expanduser(path))
    if not os.path.isdir(path):
        print(f"Directory not found: {path}")
        return None
    return path


# =====================================================
# ==================== SCAN ==========================
# =====================================================

def scan_videos(folder, extensions=VIDEO_EXTENSIONS):
    """Return {size: [paths]} for every video under folder (recursively).

    Only regular files are bucketed. Symlinks are skipped, and a file reached
    through several hard links is recorded once, under its first path, so a
    group never holds two names for the same data.
    """
    extensions = tuple(ext.lower() for ext in extensions)
    size_map = defaultdict(list)
    seen_inodes = set()

    def report(err):
        print(f"Error accessing path {err.filename!r}: {err.strerror or err}")

    for root, dirs, files in os.walk(folder, onerror=report):
        dirs.sort()
        for file in sorted(files):
            if not file.lower().endswith(extensions):
                continue
            path = os.path.join(root, file)
            try:
                st = os.lstat(path)
            except OSError as e:
                print(f"Error accessing path {path!r}: {e.strerror or e}")
                continue
            if not stat.S_ISREG(st.st_mode):
                continue
            if st.st_nlink > 1:
                inode = (st.st_dev, st.st_ino)
                if inode in seen_inodes:
                    print(f"Skipping hard link: {path}")
                    continue
                seen_inodes.add(inode)
            size_map[st.st_size].append(path)
    return dict(size_map)


def duplicate_size_groups(size_map):
    """Size buckets holding more than one file, smallest first"""
    return [(size, size_map[size]) for size in sorted(size_map) if len(size_map[size]) > 1]


def group_by_hash(files):
    """Bucket files by content hash; unreadable files are reported and left out"""
    hash_map = defaultdict(list)
    for path in tqdm(files, desc="Hashing", unit="file", leave=False):
        try:
            file_hash = get_file_hash(path)
        except OSError as e:
            tqdm.write(f"Error hashing file {path}: {e}", file=sys.stdout)
            continue
        hash_map[file_hash].append(path)
    return dict(hash_map)


# =====================================================
# ==================== REPORT ========================
# =====================================================

def print_duplicates_table(size_map):
    """Print same-size files as a table, sorted by size"""
    print(f"{'File Size (bytes)':<15} {'File Paths':<50}")
    print("-" * TABLE_WIDTH)
    for size, files in duplicate_size_groups(size_map):
        for f in files:
            print(f"{size:<15d} {f:<50}")
        print("-" * TABLE_WIDTH)


def calculate_potential_space_saved(size_map):
    """Bytes freed if all but one file of every size group were deleted"""
    return sum((len(files) - 1) * size for size, files in duplicate_size_groups(size_map))


def write_report(size_map, output_csv):
    """Save the same-size groups as a CSV report"""
    rows = []
    for idx, (size, files) in enumerate(duplicate_size_groups(size_map)):
        for f in files:
            rows.append({"size_bytes": size, "group_id": f"size_group_{idx}", "file_path": f})
    df = pd.DataFrame(rows, columns=["size_bytes", "group_id", "file_path"])
    df.to_csv(output_csv, index=False)
    return len(df)


# =====================================================
# ==================== DELETE DUPLICATES =============
# =====================================================

def delete_duplicates(size_map, dry_run=None):
    """Hash every same-size group and offer to delete all but the first copy"""
    if dry_run is None:
        dry_run = DRY_RUN
    summary = DeletionSummary()

    for size, files in duplicate_size_groups(size_map):
        print(f"\nProcessing files of size {size} bytes:")
        hash_map = group_by_hash(files)

        for file_hash, duplicates in hash_map.items():
            if len(duplicates) < 2:
                continue
            print(f"Duplicate files with hash {file_hash}:")
            print(f"  Keeping: {duplicates[0]}")
            for f in duplicates[1:]:
                if not confirm(f"  Do you want to delete: {f}? (y/n): "):
                    print(f"  Skipped: {f}")
                    summary.skipped += 1
                    continue
                if dry_run:
                    print(f"  Would delete: {f}")
                    summary.deleted += 1
                    summary.bytes_freed += size
                    continue
                try:
                    os.remove(f)
                except OSError as e:
                    print(f"Error deleting file {f}: {e}")
                    summary.failed += 1
                    continue
                print(f"  Deleted: {f}")
                summary.deleted += 1
                summary.bytes_freed += size

    return summary


def print_summary(summary, dry_run=None):
    """Print the totals banner after a deletion pass"""
    if dry_run is None:
        dry_run = DRY_RUN
    print("\n=================================")
    if dry_run:
        print("DRY RUN MODE - No files deleted")
        print(f"Would delete: {summary.deleted}")
    else:
        print(f"Total deleted: {summary.deleted}")
    print(f"Skipped: {summary.skipped}")
    if summary.failed:
        print(f"Failed: {summary.failed}")
    print(f"Space freed: {summary.bytes_freed} bytes ({human_readable_size(summary.bytes_freed)})")
    print("=================================")


# =====================================================
# ==================== CLI ENTRY POINT ==============
# =====================================================

def build_parser():
    """Command line options; --dryrun defaults to DRY_RUN"""
    parser = argparse.ArgumentParser(description="Find and delete duplicate video files")
    parser.add_argument("directory", nargs="?", default=None, help="Folder to scan (prompted if omitted)")
    parser.add_argument("--extensions", "-e", nargs="+", default=list(VIDEO_EXTENSIONS),
                        help="File extensions to scan (default: common video formats)")
    parser.add_argument("--dryrun", action="store_true", default=DRY_RUN, help="Enable dry run mode")
    parser.add_argument("--report", "-r", type=str, default=None, help="Save same-size groups to this CSV file")
    parser.add_argument("--no-pause", action="store_true", help="Don't wait for Enter before exiting")
    return parser


def normalize_extensions(extensions):
    """Lowercase extensions and add the leading dot where missing"""
    return tuple(e.lower() if e.startswith(".") else f".{e.lower()}" for e in extensions)


def main(argv=None):
    """Scan, report, and optionally delete; returns the exit status"""
    args = build_parser().parse_args(argv)

    try:
        folder = get_valid_directory("Please enter a directory path to scan: ", args.directory)
        if folder is None:
            time.sleep(EXIT_DELAY)
            return 1

        size_map = scan_videos(folder, normalize_extensions(args.extensions))

        print("Video files with the same size:")
        print_duplicates_table(size_map)

        total_saved = calculate_potential_space_saved(size_map)
        print(f"\nTotal space that can be saved by deleting duplicates: "
              f"{total_saved} bytes ({human_readable_size(total_saved)})")

        if args.report:
            rows = write_report(size_map, args.report)
            print(f"CSV report saved as: {args.report} ({rows} rows)")

        if not duplicate_size_groups(size_map):
            print("\nNo duplicate video files found.")
        elif confirm("\nDo you want to delete duplicate video files with the same size? (y/n): "):
            summary = delete_duplicates(size_map, dry_run=args.dryrun)
            print_summary(summary, dry_run=args.dryrun)

        if not args.no_pause:
            print("\nPress Enter to exit...")
            try:
                input()
            except EOFError:
                pass
    except KeyboardInterrupt:
        print("\nAborted.")
        return 130

    return 0


# =====================================================
# ==================== RUN SCRIPT ===================
# =====================================================
if __name__ == "__main__":
    sys.exit(main())
