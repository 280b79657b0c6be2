import html
import json
from typing import Iterable, Optional

from .store import SignedResult

SIGNATURE_FORM_URL = "https://api.random.org/signatures/form"


# -------------------------------------------------------------------
# Static assets
# -------------------------------------------------------------------

SITE_CSS = """
:root{--pad:40px;--maxw:860px;--topbar-h:56px;--radius:18px;--shadow:0 16px 50px rgba(0,0,0,0.10)}
@media (max-width:420px){:root{--pad:20px;--topbar-h:52px}}
*{box-sizing:border-box}
body{margin:0;color:#111;font-family:ui-sans-serif,system-ui,-apple-system,Segoe UI,Roboto,Helvetica,Arial,sans-serif;background:
  radial-gradient(900px 280px at 20% 0%, rgba(106,90,205,0.12), transparent 60%),
  radial-gradient(900px 280px at 80% 20%, rgba(0,188,212,0.10), transparent 60%),
  #ffffff;
}
.topbar{position:fixed;top:0;left:0;right:0;height:var(--topbar-h);display:flex;align-items:center;z-index:1000;
  background:rgba(255,255,255,0.88);backdrop-filter:blur(10px);border-bottom:1px solid rgba(0,0,0,0.06)}
.topbarInner{max-width:var(--maxw);width:100%;margin:0 auto;padding:0 var(--pad);display:flex;align-items:center;justify-content:space-between;gap:12px}
.brand{font-weight:700;font-size:16px;white-space:nowrap;overflow:hidden;text-overflow:ellipsis}
.logout{font-weight:800;text-decoration:none;color:#111;border:1px solid rgba(0,0,0,0.12);padding:8px 12px;border-radius:12px;background:#fff;font-size:14px}
.spacer{width:80px}
main{padding-top:calc(var(--topbar-h) + 18px);padding-left:var(--pad);padding-right:var(--pad);padding-bottom:40px}
.pageCenter{max-width:720px;margin:0 auto}
.card{background:rgba(255,255,255,0.92);border:1px solid rgba(0,0,0,0.10);border-radius:var(--radius);box-shadow:var(--shadow);padding:22px;margin-top:14px}
.h1{font-size:40px;line-height:1.05;margin:12px 0 14px;font-weight:800}
.p{margin:8px 0;color:#333}
.small{color:#666;font-size:13px}
.err{color:#b00020;margin-top:10px}
.ok{color:#1b7f3a;font-weight:800}
.bad{color:#b00020;font-weight:800}
.row{display:flex;gap:18px;flex-wrap:wrap;align-items:flex-end}
label{display:block;margin:0 0 6px;font-weight:600}
.formStack{display:flex;flex-direction:column;gap:12px}
input[type=number],input[type=password]{padding:10px;font-size:16px;width:220px;max-width:100%;border:1px solid rgba(0,0,0,0.12);border-radius:12px;background:#fff}
button{padding:12px 16px;font-size:16px;cursor:pointer;border-radius:14px;border:1px solid rgba(0,0,0,0.10);background:#1565ff;color:#fff;font-weight:800}
button:disabled{opacity:0.55;cursor:not-allowed}
.progressBar{height:10px;background:#eee;border-radius:999px;overflow:hidden;margin-top:14px}
.progressFill{height:100%;width:0%;background:linear-gradient(90deg,#6a5acd,#00bcd4);border-radius:999px}
.status{margin-top:8px;color:#666;font-size:13px;min-height:18px}
.hidden{display:none}
.resultCard{text-align:center;padding:26px}
.numBox{display:inline-flex;align-items:center;justify-content:center;min-width:160px;min-height:160px;padding:18px 26px;margin:18px auto 6px auto;border-radius:22px;
  background:linear-gradient(135deg, rgba(106,90,205,0.18), rgba(0,188,212,0.16));border:1px solid rgba(0,0,0,0.06)}
.num{font-size:84px;font-weight:800;line-height:1}
.btnRow{display:flex;gap:12px;justify-content:center;flex-wrap:wrap;margin-top:16px}
.btn{display:inline-block;padding:12px 16px;border-radius:12px;text-decoration:none;font-weight:800;border:1px solid rgba(0,0,0,0.12)}
.btnPrimary{background:#1565ff;color:#fff;border-color:#1565ff}
.btnGhost{background:#fff;color:#1565ff;border-color:rgba(21,101,255,0.30)}
textarea{width:100%;min-height:160px;font-family:ui-monospace,SFMono-Regular,Menlo,Monaco,Consolas,monospace;font-size:12px;padding:10px;border-radius:12px;border:1px solid rgba(0,0,0,0.12)}
.title{font-weight:800;font-size:18px}
.strong{font-weight:800}
.label{font-weight:700;margin-bottom:8px}
.steps{margin:10px 0 0 18px}
.copyRow{display:flex;justify-content:space-between;align-items:center;gap:12px;flex-wrap:wrap}
"""

APP_JS = """
(function(){
  const $ = (id) => document.getElementById(id);
  const sleep = (ms) => new Promise(r => setTimeout(r, ms));

  async function runGenerate(){
    const btn = $('go'), bar = $('bar'), status = $('status'), wrap = $('progressWrap'), err = $('err');
    err.textContent = '';
    wrap.classList.remove('hidden');
    status.textContent = 'Generating…';
    bar.style.width = '0%';
    btn.disabled = true;

    const qs = 'min=' + encodeURIComponent($('min').value) + '&max=' + encodeURIComponent($('max').value);
    const request = fetch('/api/rng?' + qs).then(async r => {
      const j = await r.json().catch(() => null);
      if (!r.ok) throw new Error((j && (j.detail || j.error)) || 'Request failed');
      return j;
    });

    const start = performance.now(), duration = 3000;
    (function tick(){
      const t = Math.min(1, (performance.now() - start) / duration);
      bar.style.width = Math.floor(t * 100) + '%';
      if (t < 1) requestAnimationFrame(tick);
    })();

    try {
      const [j] = await Promise.all([request, sleep(duration)]);
      status.textContent = 'Done';
      if (j.resultUrl) { window.location.href = j.resultUrl; return; }
      err.textContent = 'Missing resultUrl from server.';
    } catch (e) {
      err.textContent = e.message || String(e);
      status.textContent = '';
    } finally {
      btn.disabled = false;
      setTimeout(() => { wrap.classList.add('hidden'); bar.style.width = '0%'; }, 800);
    }
  }

  document.addEventListener('DOMContentLoaded', () => {
    const btn = $('go');
    if (btn) btn.addEventListener('click', runGenerate);
  });
})();
"""

RESULT_JS = """
(function(){
  function confettiBurst(){
    const canvas = document.createElement('canvas');
    canvas.style.cssText = 'position:fixed;inset:0;pointer-events:none;z-index:500';
    canvas.width = window.innerWidth;
    canvas.height = window.innerHeight;
    document.body.appendChild(canvas);
    const ctx = canvas.getContext('2d');
    const colors = ['#6a5acd','#00bcd4','#ff9800','#e91e63','#4caf50','#ffc107'];
    const parts = Array.from({length: 160}).map(() => ({
      x: canvas.width * 0.5, y: canvas.height * 0.25,
      vx: (Math.random() - 0.5) * 12, vy: Math.random() * -9 - 7,
      g: 0.28 + Math.random() * 0.14, size: 4 + Math.random() * 6,
      color: colors[(Math.random() * colors.length) | 0],
      rot: Math.random() * Math.PI, vr: (Math.random() - 0.5) * 0.35
    }));
    const start = performance.now();
    function frame(t){
      ctx.clearRect(0, 0, canvas.width, canvas.height);
      for (const p of parts) {
        p.vy += p.g; p.x += p.vx; p.y += p.vy; p.rot += p.vr;
        ctx.save(); ctx.translate(p.x, p.y); ctx.rotate(p.rot);
        ctx.fillStyle = p.color; ctx.fillRect(-p.size/2, -p.size/2, p.size, p.size);
        ctx.restore();
      }
      if (t - start < 1600) requestAnimationFrame(frame); else canvas.remove();
    }
    requestAnimationFrame(frame);
  }
  window.addEventListener('load', () => setTimeout(confettiBurst, 120));
})();
"""

VERIFY_JS = """
(function(){
  async function copyText(id) {
    const el = document.getElementById(id);
    if (!el) return;
    try {
      await navigator.clipboard.writeText(el.value);
    } catch {
      el.select();
      document.execCommand('copy');
      window.getSelection().removeAllRanges();
    }
  }
  document.addEventListener('DOMContentLoaded', () => {
    document.querySelectorAll('[data-copy]').forEach(btn => {
      btn.addEventListener('click', () => copyText(btn.getAttribute('data-copy')));
    });
  });
})();
"""

ASSETS = {
    "site.css": ("text/css", SITE_CSS),
    "app.js": ("application/javascript", APP_JS),
    "result.js": ("application/javascript", RESULT_JS),
    "verify.js": ("application/javascript", VERIFY_JS),
}


# -------------------------------------------------------------------
# Layout
# -------------------------------------------------------------------

def _e(value) -> str:
    return html.escape(str(value), quote=True)


def page_html(title: str, body: str, show_logout: bool = True, scripts: Iterable[str] = (), build_id: str = "") -> str:
    logout = '<a class="logout" href="/logout">Logout</a>' if show_logout else '<div class="spacer"></div>'
    script_tags = "\n".join(
        f'<script src="/assets/{_e(name)}?v={_e(build_id)}" defer></script>' for name in scripts
    )
    return f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>{_e(title)}</title>
  <link rel="stylesheet" href="/assets/site.css?v={_e(build_id)}">
</head>
<body>
  <div class="topbar">
    <div class="topbarInner">
      <div class="brand">Random Number Generator</div>
      {logout}
    </div>
  </div>
  <main>
    {body}
  </main>
  {script_tags}
</body>
</html>"""


# -------------------------------------------------------------------
# Pages
# -------------------------------------------------------------------

def login_page(err: str = "", build_id: str = "") -> str:
    err_html = f'<div class="err">{_e(err)}</div>' if err else ""
    body = f"""
    <div class="pageCenter">
      <div class="h1">Enter passphrase</div>
      <div class="card">
        <form method="post" action="/login" class="formStack">
          <label for="pass">Passphrase</label>
          <input id="pass" type="password" name="passphrase" placeholder="Passphrase" autofocus required />
          <button type="submit">Unlock</button>
          {err_html}
        </form>
      </div>
    </div>"""
    return page_html("Login", body, show_logout=False, build_id=build_id)


def home_page(build_id: str = "") -> str:
    body = """
    <div class="pageCenter">
      <div class="h1">Random Number Generator</div>
      <div class="p">Numbers are drawn by <code>random.org</code> and signed, so every result can be verified later.</div>
      <div class="card">
        <div class="row">
          <div>
            <label for="min">Min (inclusive)</label>
            <input id="min" type="number" value="1" />
          </div>
          <div>
            <label for="max">Max (inclusive)</label>
            <input id="max" type="number" value="100" />
          </div>
          <div>
            <button id="go">Generate</button>
          </div>
        </div>
        <div id="progressWrap" class="hidden">
          <div class="progressBar"><div class="progressFill" id="bar"></div></div>
          <div class="status" id="status"></div>
        </div>
        <div id="err" class="err"></div>
      </div>
    </div>"""
    return page_html("RNG", body, scripts=["app.js"], build_id=build_id)


def result_page(reference: str, signed: SignedResult, build_id: str = "") -> str:
    body = f"""
    <div class="pageCenter">
      <div class="card resultCard">
        <div class="title">Result</div>
        <div class="numBox"><div class="num">{_e(signed.value)}</div></div>
        <div class="small">Generated by random.org (signed)</div>
        <div class="btnRow">
          <a class="btn btnPrimary" href="/verify/{_e(reference)}">Verify</a>
          <a class="btn btnGhost" href="/">Generate another</a>
        </div>
      </div>
    </div>"""
    return page_html("Result", body, scripts=["result.js"], build_id=build_id)


def verify_page(
    proof_url: str,
    signed: SignedResult,
    authentic: Optional[bool],
    error: str = "",
    build_id: str = "",
) -> str:
    """Render the verification page.

    ``authentic`` is None when random.org could not be asked; ``error`` then
    explains why. The raw proof is shown either way so it can be checked by
    hand on random.org's signature form.
    """
    if authentic is None:
        verdict = f'<div class="err">Could not reach random.org: {_e(error)}</div>'
    elif authentic:
        verdict = '<div class="ok">random.org confirms this signature is authentic.</div>'
    else:
        verdict = '<div class="bad">random.org reports this signature is NOT authentic.</div>'

    random_json = json.dumps(signed.random, indent=2)
    body = f"""
    <div class="pageCenter">
      <div class="h1">Verification</div>
      <div class="card">
        <div class="strong">Result {_e(signed.value)}</div>
        {verdict}
      </div>
      <div class="card">
        <div class="strong">Verify on random.org yourself</div>
        <ol class="steps">
          <li>Open: <a href="{SIGNATURE_FORM_URL}" target="_blank" rel="noreferrer">{SIGNATURE_FORM_URL}</a></li>
          <li>Paste <b>random (JSON)</b> and <b>signature</b> from below</li>
          <li>Submit; random.org should confirm the signature is valid</li>
        </ol>
      </div>
      <div class="card">
        <div class="copyRow">
          <div class="label">random (JSON)</div>
          <button type="button" data-copy="random">Copy random</button>
        </div>
        <textarea id="random" readonly>{_e(random_json)}</textarea>
      </div>
      <div class="card">
        <div class="copyRow">
          <div class="label">signature</div>
          <button type="button" data-copy="signature">Copy signature</button>
        </div>
        <textarea id="signature" readonly>{_e(signed.signature)}</textarea>
      </div>
      <div class="card">
        <div class="label">Proof link</div>
        <div class="small"><a href="{_e(proof_url)}">{_e(proof_url)}</a></div>
      </div>
    </div>"""
    return page_html("Verification", body, scripts=["verify.js"], build_id=build_id)


def message_page(title: str, message: str, build_id: str = "") -> str:
    body = f"""
    <div class="pageCenter">
      <div class="h1">{_e(title)}</div>
      <div class="p">{_e(message)}</div>
    </div>"""
    return page_html(title, body, build_id=build_id)
