# videocatalog/pages.py
from __future__ import annotations
from html import escape
from typing import List
from urllib.parse import quote

from videocatalog.catalog import VideoFileDescriptor
from videocatalog.upload import format_megabytes

PAGE_STYLE = """
    body {
      font-family: system-ui, -apple-system, BlinkMacSystemFont, "Segoe UI", sans-serif;
      margin: 0;
      padding: 0;
      background: #020617;
      color: #f9fafb;
    }
    .page {
      max-width: 960px;
      margin: 0 auto;
      padding: 24px 16px 40px;
    }
    header p {
      margin: 0;
      color: #9ca3af;
      font-size: 0.95rem;
    }
    .grid {
      display: grid;
      grid-template-columns: 1.4fr 1fr;
      gap: 16px;
      align-items: flex-start;
    }
    .card {
      border-radius: 16px;
      padding: 16px 18px;
      background: radial-gradient(circle at top left, #111827, #020617);
      box-shadow: 0 18px 40px rgba(0,0,0,0.55);
    }
    table {
      width: 100%;
      border-collapse: collapse;
      font-size: 0.9rem;
    }
    td, th {
      text-align: left;
      padding: 6px 4px;
      border-bottom: 1px solid #1f2937;
    }
    a {
      color: #38bdf8;
    }
    video {
      width: 100%;
      max-height: 540px;
      border-radius: 12px;
      background: black;
    }
    button {
      margin-top: 12px;
      border-radius: 999px;
      border: none;
      padding: 9px 18px;
      background: linear-gradient(135deg, #22c55e, #14b8a6);
      color: white;
      font-weight: 600;
      cursor: pointer;
    }
    #upload-message.error { color: #f87171; }
    #upload-message.ok { color: #4ade80; }
    @media (max-width: 800px) {
      .grid {
        grid-template-columns: 1fr;
      }
    }
"""

PAGE_SCRIPT = """
    function playVideo(name) {
      const player = document.getElementById("player");
      player.src = "/Home/Play?fileName=" + encodeURIComponent(name);
      player.play();
    }

    function setMessage(text, cls) {
      const el = document.getElementById("upload-message");
      el.textContent = text;
      el.className = cls || "";
    }

    async function loadVideos() {
      try {
        const r = await fetch("/Home/GetVideos");
        if (!r.ok) { setMessage("Error loading videos", "error"); return; }
        const data = await r.json();
        const body = document.getElementById("video-rows");
        body.innerHTML = "";
        data.forEach(v => {
          const tr = document.createElement("tr");
          const name = document.createElement("td");
          const link = document.createElement("a");
          link.href = "#";
          link.textContent = v.fileName;
          link.onclick = e => { e.preventDefault(); playVideo(v.fileName); };
          name.appendChild(link);
          const size = document.createElement("td");
          size.textContent = (v.fileSize / (1024 * 1024)).toFixed(2) + " MB";
          tr.appendChild(name);
          tr.appendChild(size);
          body.appendChild(tr);
        });
      } catch (err) {
        setMessage("Error: " + err.message, "error");
      }
    }

    async function uploadFiles(event) {
      event.preventDefault();
      const input = document.getElementById("fileInput");
      const tooBig = Array.from(input.files).filter(f => f.size > MAX_UPLOAD_BYTES).map(f => f.name);
      if (tooBig.length) {
        setMessage("Files exceeding " + MAX_UPLOAD_MB + " MB limit: " + tooBig.join(", "), "error");
        return;
      }
      const form = new FormData();
      Array.from(input.files).forEach(f => form.append("files", f));
      try {
        const r = await fetch("/api/upload", { method: "POST", body: form });
        if (r.ok) {
          input.value = "";
          setMessage("Upload successful", "ok");
          setTimeout(() => setMessage(""), 5000);
          loadVideos();
        } else {
          setMessage(await r.text() || "Error uploading files", "error");
        }
      } catch (err) {
        setMessage("Error: " + err.message, "error");
      }
    }
"""


def _video_row(v: VideoFileDescriptor) -> str:
    name = escape(v.file_name)
    href = "/Home/Play?fileName=" + quote(v.file_name)
    size = f"{v.file_size / (1024 * 1024):.2f} MB"
    return (
        f'<tr><td><a href="{escape(href)}" data-name="{name}" '
        f'onclick="event.preventDefault(); playVideo(this.dataset.name);">{name}</a></td>'
        f"<td>{size}</td></tr>"
    )


def render_index_page(videos: List[VideoFileDescriptor], max_upload_bytes: int) -> str:
    rows = "\n".join(_video_row(v) for v in videos)
    if not videos:
        rows = '<tr><td colspan="2">No videos yet.</td></tr>'
    limit_mb = format_megabytes(max_upload_bytes)
    return f"""
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <title>Video Catalog</title>
  <style>{PAGE_STYLE}</style>
</head>
<body>
  <div class="page">
    <header>
      <h1>Video Catalog</h1>
      <p>{len(videos)} video(s) in the media folder.</p>
    </header>

    <div class="grid">
      <section class="card">
        <video id="player" controls preload="metadata"></video>
        <table>
          <thead><tr><th>File</th><th>Size</th></tr></thead>
          <tbody id="video-rows">
{rows}
          </tbody>
        </table>
      </section>

      <aside class="card">
        <h3 style="margin-top:0;font-size:1rem;">Upload videos</h3>
        <form id="upload-form" onsubmit="uploadFiles(event)">
          <input id="fileInput" name="files" type="file" accept="video/mp4,.mp4" multiple required />
          <button type="submit">Upload</button>
        </form>
        <p style="font-size:0.8rem;color:#9ca3af;">MP4 only, up to {limit_mb} MB per upload.</p>
        <p id="upload-message"></p>
      </aside>
    </div>
  </div>

  <script>
    const MAX_UPLOAD_BYTES = {int(max_upload_bytes)};
    const MAX_UPLOAD_MB = "{limit_mb}";
{PAGE_SCRIPT}
  </script>
</body>
</html>
"""
