"""linescan User Configuration.

This is the user-facing configuration file. Modify settings here to customize
the pipeline behavior. Expert defaults live in linescan.schemas.param.

Usage:
    python scripts/run_linescan.py scripts/user_config.py
    python scripts/run_linescan.py scripts/user_config.py --source recordings/lamp.mp4
    python scripts/run_linescan.py scripts/user_config.py --mode live
"""

CONFIG = {
    # ========================================================================
    # PIPELINE MODE & SOURCE
    # ========================================================================
    "MODE": "accumulate",     # "live" (every frame) or "accumulate" (sum N frames)
    "VIDEO_SOURCE": 0,        # Camera index, video file path or stream URL
    "BASE_DIR": "./linescan_output",  # All outputs go here
    "SETTINGS_FILE": None,    # None: <BASE_DIR>/settings/linescan_settings.json

    # ========================================================================
    # CAPTURE SETTINGS
    # ========================================================================
    "FRAME_WIDTH": 640,
    "FRAME_HEIGHT": 480,
    "FPS": 30,

    # ========================================================================
    # SAMPLE LINE (pixels; x right, y down)
    # ========================================================================
    "LINE_START": (40, 240),  # None to define later / restore from settings
    "LINE_END": (600, 240),
    "Y_OFFSET": 0,            # Vertical shift, within ±50 px
    "ROTATION": 0,            # Degrees about the line midpoint, within ±90

    # ========================================================================
    # ACCUMULATION
    # ========================================================================
    "FRAME_COUNT": 10,        # Frames summed per accumulated trace

    # ========================================================================
    # WAVELENGTH CALIBRATION
    # ========================================================================
    "CALIBRATION_POINTS": [
        (0.25, 450),          # (normalized position, wavelength nm)
        (0.75, 650),
    ],
    "USE_CALIBRATION": False,
    "FLIP_X_AXIS": False,     # Display only; stored positions are unchanged

    # ========================================================================
    # OUTPUT
    # ========================================================================
    "SAVE_TRACES": True,      # Accumulated traces to NetCDF
    "PLOT_EVERY": 1,          # Plot every Nth emitted trace
}
