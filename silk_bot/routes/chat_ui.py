from __future__ import annotations

import json

from flask import Blueprint, Response

from ..client.chat_session import WELCOME_MESSAGE

bp = Blueprint("chat_ui", __name__)


@bp.route("/chat/ui", methods=["GET"])
def chat_ui() -> Response:
    html = _build_html_page().replace("__WELCOME__", json.dumps(WELCOME_MESSAGE))
    return Response(html, mimetype="text/html; charset=utf-8")


def _build_html_page() -> str:
    return """
<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>SILK AI Assistant</title>
    <style>
      :root { color-scheme: light dark; --primary: #0891b2; --border: #8883; }
      * { box-sizing: border-box; }
      body { margin: 0; font-family: system-ui, -apple-system, "Segoe UI", Roboto, sans-serif; background: #f5f5f5; color: #333; }
      @media (prefers-color-scheme: dark) { body { background: #1a1a1a; color: #e0e0e0; } }
      .wrap { max-width: 900px; margin: 0 auto; padding: 16px; min-height: 100vh; display: flex; flex-direction: column; }
      header { padding: 16px 0; border-bottom: 2px solid var(--primary); }
      header h1 { margin: 0; font-size: 22px; color: var(--primary); }
      header p { margin: 4px 0 0; font-size: 13px; opacity: .8; }
      #token { width: 100%; margin-top: 8px; padding: 6px 10px; border: 1px solid var(--border); border-radius: 6px; }
      #log { flex: 1; overflow-y: auto; padding: 16px 0; display: flex; flex-direction: column; gap: 12px; }
      .bubble { max-width: 80%; padding: 10px 16px; border-radius: 16px; white-space: pre-wrap; line-height: 1.5; }
      .user { align-self: flex-end; background: var(--primary); color: white; }
      .assistant { align-self: flex-start; background: #fff; border: 1px solid var(--border); }
      @media (prefers-color-scheme: dark) { .assistant { background: #262626; } }
      #notice { min-height: 20px; font-size: 13px; color: #c62828; }
      form { display: flex; gap: 8px; padding-top: 8px; border-top: 1px solid var(--border); }
      #input { flex: 1; padding: 10px 16px; border-radius: 999px; border: 2px solid var(--border); }
      button { padding: 10px 18px; border: 0; border-radius: 999px; background: var(--primary); color: white; cursor: pointer; }
      button:disabled { opacity: .5; cursor: default; }
    </style>
  </head>
  <body>
    <div class="wrap">
      <header>
        <h1>SILK AI Assistant</h1>
        <p>Your Personal Loan Relationship Manager</p>
        <input id="token" placeholder="Access token" autocomplete="off" />
      </header>
      <div id="log"></div>
      <div id="notice"></div>
      <form id="composer">
        <input id="input" placeholder="Type your message..." autocomplete="off" />
        <button id="send" type="submit">Send</button>
        <button id="stop" type="button" disabled>Stop</button>
      </form>
    </div>
    <script>
      const logEl = document.getElementById('log');
      const inputEl = document.getElementById('input');
      const tokenEl = document.getElementById('token');
      const sendBtn = document.getElementById('send');
      const stopBtn = document.getElementById('stop');
      const noticeEl = document.getElementById('notice');

      tokenEl.value = localStorage.getItem('silk_token') || '';
      tokenEl.addEventListener('change', () => localStorage.setItem('silk_token', tokenEl.value.trim()));

      let messages = [{ role: 'assistant', content: __WELCOME__ }];
      let pending = false;
      let conversationId = null;
      let controller = null;

      function render() {
        logEl.innerHTML = '';
        for (const m of messages) {
          const div = document.createElement('div');
          div.className = 'bubble ' + m.role;
          div.textContent = m.content;
          logEl.appendChild(div);
        }
        logEl.scrollTop = logEl.scrollHeight;
        sendBtn.disabled = pending;
        stopBtn.disabled = !pending;
      }

      function authHeaders() {
        return { 'Content-Type': 'application/json', 'Authorization': 'Bearer ' + tokenEl.value.trim() };
      }

      async function store(role, content) {
        if (!conversationId) return;
        try {
          await fetch('/functions/v1/conversations/' + conversationId + '/messages', {
            method: 'POST', headers: authHeaders(), body: JSON.stringify({ role, content }),
          });
        } catch (e) { console.error('store failed', e); }
      }

      async function ensureConversation() {
        if (conversationId) return;
        try {
          const res = await fetch('/functions/v1/conversations', { method: 'POST', headers: authHeaders() });
          if (res.ok) conversationId = (await res.json()).id;
        } catch (e) { console.error('conversation init failed', e); }
      }

      async function send(text) {
        if (!text.trim() || pending) return;
        noticeEl.textContent = '';
        const history = [...messages, { role: 'user', content: text }];
        messages = history.slice();
        pending = true;
        render();
        await ensureConversation();
        await store('user', text);

        let acc = '';
        let placed = false;
        controller = new AbortController();
        try {
          const res = await fetch('/functions/v1/master-agent', {
            method: 'POST', headers: authHeaders(), signal: controller.signal,
            body: JSON.stringify({ messages: history, conversationId }),
          });
          if (!res.ok) {
            let err = 'Failed to get response';
            try { err = (await res.json()).error || err; } catch (e) {}
            throw new Error(err);
          }
          messages = [...messages, { role: 'assistant', content: '' }];
          placed = true;
          render();

          const reader = res.body.getReader();
          const decoder = new TextDecoder();
          let buffer = '';
          let finished = false;
          while (!finished) {
            const { done, value } = await reader.read();
            if (done) break;
            buffer += decoder.decode(value, { stream: true });
            let idx;
            while ((idx = buffer.indexOf('\\n')) !== -1) {
              let line = buffer.slice(0, idx);
              buffer = buffer.slice(idx + 1);
              if (line.endsWith('\\r')) line = line.slice(0, -1);
              if (line.startsWith(':') || line.trim() === '') continue;
              if (!line.startsWith('data: ')) continue;
              const payload = line.slice(6).trim();
              if (payload === '[DONE]') { finished = true; break; }
              try {
                const delta = JSON.parse(payload).choices?.[0]?.delta?.content;
                if (delta) {
                  acc += delta;
                  messages = messages.map((m, i) => i === messages.length - 1 ? { ...m, content: acc } : m);
                  render();
                }
              } catch (e) { console.error('Parse error:', e); }
            }
          }
          if (finished) await reader.cancel();
          if (acc) await store('assistant', acc);
        } catch (err) {
          if (err.name !== 'AbortError') {
            if (placed) messages = messages.slice(0, -1);
            noticeEl.textContent = err.message || 'Failed to send message. Please try again.';
          } else if (acc) {
            await store('assistant', acc);
          } else if (placed) {
            messages = messages.slice(0, -1);
          }
        } finally {
          pending = false;
          controller = null;
          render();
        }
      }

      document.getElementById('composer').addEventListener('submit', (e) => {
        e.preventDefault();
        const text = inputEl.value;
        inputEl.value = '';
        send(text);
      });
      stopBtn.addEventListener('click', () => controller && controller.abort());
      render();
    </script>
  </body>
</html>
"""
