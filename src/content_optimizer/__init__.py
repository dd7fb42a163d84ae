"""
YouTube Content Optimizer - titles and thumbnails generated with Gemini.

Modules:
  config     - .env + data/optimizer_config.json settings
  errors     - Exception taxonomy shared by client and session
  models     - Languages, layout presets, image blobs and uploads
  encoder    - Local file -> data blob conversion
  prompts    - Request builders for every Gemini call
  client     - Gemini client (titles, thumbnails, edits, style, suggestions)
  history    - Linear undo/redo history of generated thumbnails
  workspace  - Uploaded assets for one thumbnail and PNG export
  session    - Application state machine tying everything together
"""
