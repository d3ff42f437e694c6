"""Single-page browser front-end served at ``GET /``.

Reads the chosen file as a data URI, posts it to the JSON API and renders the
dish name or the recipe card. Errors are shown with ``alert`` using the same
messages as the Python Client.
"""

INDEX_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>Recipe Snap</title>
<style>
  body { font-family: system-ui, sans-serif; background: #f6f7f4; color: #1f2a1f; margin: 0; padding: 1rem; display: flex; flex-direction: column; align-items: center; }
  h1 { font-weight: 600; }
  .card { background: #fff; width: 100%; max-width: 28rem; border-radius: 0.5rem; box-shadow: 0 1px 4px rgba(0,0,0,.12); padding: 1rem; margin-bottom: 1.5rem; }
  .card h2 { margin: 0 0 .25rem; font-size: 1.2rem; }
  .muted { color: #667; font-size: .9rem; margin-top: 0; }
  label.upload { display: inline-block; background: #2f6f3e; color: #fff; padding: .5rem 1rem; border-radius: .375rem; cursor: pointer; }
  input[type=file] { display: none; }
  img#preview { display: none; width: 100%; max-height: 12rem; object-fit: cover; border-radius: .375rem; margin-top: 1rem; }
  .actions { display: flex; justify-content: space-between; margin-top: 1rem; }
  button { border: 0; border-radius: .375rem; padding: .5rem 1rem; cursor: pointer; font-size: .95rem; }
  button.accent { background: #d9822b; color: #fff; }
  button.secondary { background: #e4e7e1; }
  button:disabled { opacity: .5; cursor: wait; }
  .scroll { max-height: 200px; overflow-y: auto; border: 1px solid #e4e7e1; border-radius: .375rem; padding: .75rem 1rem; }
  [hidden] { display: none !important; }
</style>
</head>
<body>
<h1>Recipe Snap</h1>

<div class="card">
  <h2>Upload an Image</h2>
  <p class="muted">Take a photo of ingredients or a dish to get started.</p>
  <input type="file" id="image-upload" accept="image/*">
  <label class="upload" for="image-upload">&#128247; Upload Image</label>
  <img id="preview" alt="Uploaded">
  <div class="actions">
    <button class="accent" id="generate-recipe">Generate Recipe</button>
    <button class="secondary" id="identify-dish">Identify Dish</button>
  </div>
  <div id="dish" hidden>
    <p class="muted">Identified Dish:</p>
    <p id="dish-name" style="font-size:1.15rem;margin:0"></p>
    <p id="dish-confidence" class="muted"></p>
  </div>
</div>

<div class="card" id="recipe" hidden>
  <h2 id="recipe-name"></h2>
  <p class="muted">Here's the generated recipe based on the image.</p>
  <h3>Ingredients:</h3>
  <div class="scroll"><ul id="recipe-ingredients"></ul></div>
  <h3>Instructions:</h3>
  <div class="scroll"><ol id="recipe-instructions"></ol></div>
</div>

<script>
  let photoDataUri = null;
  let inFlight = false;
  const $ = (id) => document.getElementById(id);

  $("image-upload").addEventListener("change", (event) => {
    const file = event.target.files && event.target.files[0];
    if (!file) return;
    const reader = new FileReader();
    reader.onloadend = () => {
      photoDataUri = reader.result;
      $("preview").src = photoDataUri;
      $("preview").style.display = "block";
    };
    reader.readAsDataURL(file);
  });

  async function callFlow(path) {
    const response = await fetch(path, {
      method: "POST",
      headers: { "Content-Type": "application/json" },
      body: JSON.stringify({ photoDataUri }),
    });
    const body = await response.json();
    if (!response.ok) throw new Error(body.message || response.statusText);
    return body;
  }

  async function run(path, onSuccess, onFailure, failurePrefix) {
    if (!photoDataUri) { alert("Please upload an image first."); return; }
    if (inFlight) { alert("A request is already in progress. Please wait for it to finish."); return; }
    inFlight = true;
    document.querySelectorAll("button").forEach((b) => (b.disabled = true));
    try {
      onSuccess(await callFlow(path));
    } catch (error) {
      console.error(error);
      onFailure();
      alert(failurePrefix + error.message);
    } finally {
      inFlight = false;
      document.querySelectorAll("button").forEach((b) => (b.disabled = false));
    }
  }

  function fillList(id, items) {
    const list = $(id);
    list.replaceChildren(...items.map((text) => {
      const li = document.createElement("li");
      li.textContent = text;
      return li;
    }));
  }

  $("identify-dish").addEventListener("click", () => run(
    "/api/identify-dish",
    (dish) => {
      $("dish-name").textContent = dish.dishName;
      $("dish-confidence").textContent = "Confidence: " + Math.round(dish.confidence * 100) + "%";
      $("dish").hidden = false;
    },
    () => { $("dish").hidden = true; },
    "Failed to identify dish: ",
  ));

  $("generate-recipe").addEventListener("click", () => run(
    "/api/generate-recipe",
    (recipe) => {
      $("recipe-name").textContent = recipe.recipeName;
      fillList("recipe-ingredients", recipe.ingredients);
      fillList("recipe-instructions", recipe.instructions);
      $("recipe").hidden = false;
    },
    () => { $("recipe").hidden = true; },
    "Failed to generate recipe: ",
  ));
</script>
</body>
</html>
"""
