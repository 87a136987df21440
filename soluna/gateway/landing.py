"""Static landing page served at ``/``."""

LANDING_PAGE_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Soluna: Sun, Moon &amp; Prayer Times API</title>
    <style>
        body { font-family: -apple-system, "Segoe UI", Roboto, sans-serif; background: #0a0e1a; color: #a8b3c1; margin: 0; }
        .container { max-width: 960px; margin: 0 auto; padding: 24px; }
        h1 { color: #e8ecf1; font-size: 24px; }
        .section { background: #151b2b; border-radius: 8px; padding: 20px; margin-bottom: 24px; }
        label { display: block; font-size: 13px; margin-bottom: 6px; }
        input, select { width: 100%; background: #1e2639; border: 1px solid #2a3447; border-radius: 6px; padding: 10px; color: #fff; margin-bottom: 12px; }
        button { background: #2d7a4d; color: #fff; border: none; border-radius: 6px; padding: 10px 20px; cursor: pointer; }
        pre { background: #1e2639; border-radius: 6px; padding: 16px; color: #e8ecf1; white-space: pre-wrap; min-height: 120px; }
    </style>
</head>
<body>
<div class="container">
    <h1>Soluna</h1>
    <p>Sun, moon &amp; prayer times for any address.</p>
    <div class="section">
        <form id="qform">
            <label for="address">Location</label>
            <input type="text" id="address" name="address" placeholder="e.g. Dhaka, London,UK" required>
            <label for="date">Date</label>
            <input type="date" id="date" name="date">
            <label for="method">Calculation method</label>
            <select id="method" name="method"></select>
            <button type="submit" id="send">Get Prayer Times</button>
        </form>
    </div>
    <div class="section">
        <code id="endpoint"></code>
        <pre id="result"></pre>
    </div>
</div>
<script>
    const form = document.getElementById("qform");
    const result = document.getElementById("result");
    const endpoint = document.getElementById("endpoint");
    const methodSelect = document.getElementById("method");
    document.getElementById("date").valueAsDate = new Date();

    fetch("/?methods=true").then(r => r.json()).then(data => {
        methodSelect.innerHTML = data.methods.map(m =>
            '<option value="' + m.id + '"' + (m.id === 1 ? " selected" : "") + ">" + m.id + " - " + m.name + "</option>"
        ).join("");
    });

    function formatDateForApi(dateStr) {
        const d = dateStr ? new Date(dateStr) : new Date();
        return String(d.getDate()).padStart(2, "0") + "-" + String(d.getMonth() + 1).padStart(2, "0") + "-" + d.getFullYear();
    }

    form.addEventListener("submit", async (e) => {
        e.preventDefault();
        const data = Object.fromEntries(new FormData(form).entries());
        const params = new URLSearchParams({ address: data.address, method: data.method || "1" });
        const path = "/api/" + formatDateForApi(data.date) + "?" + params;
        endpoint.textContent = path;
        try {
            const res = await fetch(path);
            result.textContent = JSON.stringify(await res.json(), null, 2);
        } catch (err) {
            result.textContent = "Error: " + err.message;
        }
    });
</script>
</body>
</html>
"""
