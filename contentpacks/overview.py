"""
Content Package Overview Page

Simple HTML page listing the locally available content packages, with an
upload form. Uploads redirect back here with ?success={content_id}.
"""

import html
import json
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse

from .api import get_store

router = APIRouter(tags=["Overview"])


@router.get("/overview", response_class=HTMLResponse)
async def overview(request: Request, success: Optional[str] = Query(None)):
    """Index page with all content packages and an upload form."""
    store = get_store(request)
    base_path = getattr(request.app.state, "base_path", "")

    content_ids = sorted(await run_in_threadpool(store.list_packages))

    items_html = ""
    for content_id in content_ids:
        label = html.escape(content_id)
        url = f"{base_path}/{quote(content_id, safe='')}"
        items_html += f'<li><span class="id">{label}</span> <a href="{url}">archive</a></li>\n'

    if not items_html:
        items_html = "<li>No content packages available</li>"

    banner = ""
    if success:
        banner = f'<p class="success">Content package <b>{html.escape(success)}</b> uploaded.</p>'

    # JS string literal inside an HTML attribute
    upload_action = html.escape(json.dumps(f"{base_path}/upload?contentId="), quote=True)

    return HTMLResponse(content=f"""
<!DOCTYPE html>
<html>
<head>
    <title>Content Packages</title>
    <style>
        body {{
            font-family: system-ui, sans-serif;
            max-width: 720px;
            margin: 40px auto;
            padding: 0 16px;
            background: #1a1a2e;
            color: #dcdcdc;
        }}
        h1 {{ color: #4ecca3; font-weight: 500; }}
        a {{ color: #4fc3f7; margin-left: 12px; }}
        ul {{ list-style: none; padding: 0; }}
        li {{ padding: 6px 4px; border-bottom: 1px solid #2a2a4e; }}
        .id {{ font-family: monospace; }}
        .success {{ padding: 10px; background: #16213e; border-left: 4px solid #4ecca3; }}
        form {{ margin-top: 30px; display: flex; gap: 8px; }}
        input, button {{ padding: 6px 10px; }}
    </style>
</head>
<body>
    <h1>Content Packages</h1>
    {banner}
    <p>{len(content_ids)} content packages available</p>
    <ul>
        {items_html}
    </ul>
    <form method="post" enctype="multipart/form-data"
          onsubmit="this.action = {upload_action} + encodeURIComponent(this.contentId.value);">
        <input type="text" name="contentId" placeholder="Content ID" required>
        <input type="file" name="file" accept=".zip" required>
        <button type="submit">Upload</button>
    </form>
</body>
</html>
""")
