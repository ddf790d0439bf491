"""
Built-in layout used when no layout file exists or none can be loaded.
"""

DEFAULT_LAYOUT_FILENAME = "layout.toml"

DEFAULT_LAYOUT_TOML = """\
version = "1.0"
name = "Lofi Night"
description = "A chill, dark theme with rounded borders and vibrant accents."

[theme]
name = "dracula"

[theme.colors]
primary = "#bd93f9"
secondary = "#ff79c6"
background = "#282a36"
foreground = "#f8f8f2"
border = "#6272a4"
highlight = "#8be9fd"
error = "#ff5555"
success = "#50fa7b"

[[widgets]]
name = "sidebar"
type = "sidebar"
position = "left"
size = { percentage = 25 }
visible = true
border = true
title = "Library"

[[widgets]]
name = "playlist"
type = "playlist_view"
position = "center"
size = "fill"
visible = true
border = true
title = "Current Playlist"

[[widgets]]
name = "now_playing"
type = "now_playing"
position = "right"
size = { percentage = 30 }
visible = true
border = true
title = "Now Playing"

[[widgets]]
name = "album_art"
type = "album_art"
position = "right"
size = { percentage = 25 }
visible = true
border = true
title = "Visuals"

[[widgets]]
name = "progress"
type = "progress_bar"
position = "bottom"
size = { length = 3 }
visible = true
border = false

[[widgets]]
name = "status"
type = "status_bar"
position = "bottom"
size = { length = 1 }
visible = true
border = false

[keybindings]
space = "toggle_play"
n = "next_track"
p = "previous_track"
"+" = "volume_up"
"-" = "volume_down"
f5 = "reload_layout"
q = "quit"
"/" = "search"
a = "toggle_art"

[settings]
auto_save = true
debounce_ms = 300

[settings.responsive]
small_width = 80
medium_width = 120
large_width = 160
"""
