from typing import List

from pdftools.errors import ToolInputError


def parse_page_range(page_range: str, total_pages: int, strict: bool = True) -> List[int]:
    """
    Turn a page range expression into a sorted list of 1-indexed pages.

    Example:
    "1,3-5"  -> [1, 3, 4, 5]
    "all"    -> every page

    In strict mode an out-of-range or malformed item raises
    ToolInputError; otherwise such items are dropped.
    """
    page_range = (page_range or "").strip()
    if page_range.lower() == "all":
        return list(range(1, total_pages + 1))

    pages = set()
    for item in page_range.split(","):
        item = item.strip()
        if not item:
            continue
        if "-" in item:
            start_str, _, end_str = item.partition("-")
            try:
                start, end = int(start_str.strip()), int(end_str.strip())
            except ValueError:
                if strict:
                    raise ToolInputError(_range_error(item, total_pages))
                continue
            if strict and (start < 1 or end > total_pages or start > end):
                raise ToolInputError(_range_error(item, total_pages))
            pages.update(p for p in range(start, end + 1) if 1 <= p <= total_pages)
        else:
            try:
                page = int(item)
            except ValueError:
                if strict:
                    raise ToolInputError(_page_error(item, total_pages))
                continue
            if 1 <= page <= total_pages:
                pages.add(page)
            elif strict:
                raise ToolInputError(_page_error(item, total_pages))
    return sorted(pages)


def _range_error(item: str, total_pages: int) -> str:
    return f"Invalid page range: {item}. Pages must be between 1 and {total_pages}."


def _page_error(item: str, total_pages: int) -> str:
    return f"Invalid page number: {item}. Pages must be between 1 and {total_pages}."
