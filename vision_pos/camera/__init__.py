"""Camera capture and frame annotation"""
