"""Interactive flower viewer.

Controls:
    Mouse drag: Orbit
    Wheel or +/-: Zoom
    Arrow keys: Orbit
    SPACE: Pause/resume animation
    N: Next seed
    ESC: Quit

Headless mode (--headless):
    Steps the animation without opening a window, useful for testing.
"""

import argparse
import logging
import sys

import numpy as np

from bloom.animation import apply_delta, petal_delta
from bloom.flower import build_flower
from bloom.presets import PRESETS, get_preset
from viewer.camera import OrbitCamera

logger = logging.getLogger(__name__)


def run_headless(
    num_frames: int = 60,
    fps: float = 60.0,
    preset: str = "realistic_rose",
    seed: int = 42,
    verbose: bool = False,
) -> list[np.ndarray]:
    """Step the petal animation without a display.

    Args:
        num_frames: Number of frames to simulate
        fps: Simulated frame rate
        preset: Preset name
        seed: Generation seed

    Returns:
        One (P, 4) array of animated petal quaternions per frame. The
        flower's own instances are left untouched.
    """
    flower = build_flower(seed, get_preset(preset))
    style = flower.config.animation
    dt = 1.0 / fps

    frames = []
    for i in range(num_frames):
        elapsed = i * dt
        orientations = np.empty((len(flower.petals), 4))
        for j, petal in enumerate(flower.petals):
            _, orientations[j] = apply_delta(petal.position, petal.orientation, petal_delta(petal, elapsed, style))
        frames.append(orientations)
        if verbose and (i + 1) % max(num_frames // 4, 1) == 0:
            print(f"  frame {i + 1}/{num_frames} t={elapsed:.2f}s")

    return frames


def run_viewer(preset: str = "realistic_rose", seed: int = 42):
    """Launch the interactive OpenGL viewer."""
    try:
        import pygame
        from pygame.locals import (
            DOUBLEBUF,
            K_DOWN,
            K_EQUALS,
            K_ESCAPE,
            K_KP_MINUS,
            K_KP_PLUS,
            K_LEFT,
            K_MINUS,
            K_PLUS,
            K_RIGHT,
            K_SPACE,
            K_UP,
            K_n,
            KEYDOWN,
            MOUSEBUTTONDOWN,
            MOUSEBUTTONUP,
            MOUSEMOTION,
            MOUSEWHEEL,
            OPENGL,
            QUIT,
        )
        import OpenGL.GL as GL
        import OpenGL.GLU as GLU
    except ImportError as e:
        print(f"Error: {e}")
        print("Install pygame and PyOpenGL: pip install pygame PyOpenGL")
        sys.exit(1)

    from viewer.flower_mesh import FlowerRenderer

    pygame.init()
    width, height = 800, 600
    pygame.display.set_mode((width, height), DOUBLEBUF | OPENGL)
    pygame.display.set_caption(f"Bloom - {preset} seed {seed} | drag/wheel/N/SPACE | ESC=Quit")

    camera = OrbitCamera()
    GL.glViewport(0, 0, width, height)

    renderer = FlowerRenderer(build_flower(seed, get_preset(preset)))
    renderer.init_gl()

    clock = pygame.time.Clock()
    elapsed = 0.0
    paused = False
    dragging = False
    running = True

    while running:
        dt = clock.tick(60) / 1000.0
        if not paused:
            elapsed += dt

        for event in pygame.event.get():
            if event.type == QUIT:
                running = False
            elif event.type == KEYDOWN:
                if event.key == K_ESCAPE:
                    running = False
                elif event.key == K_SPACE:
                    paused = not paused
                elif event.key == K_n:
                    seed += 1
                    renderer.cleanup()
                    renderer = FlowerRenderer(build_flower(seed, get_preset(preset)))
                    renderer.init_gl()
                    pygame.display.set_caption(f"Bloom - {preset} seed {seed} | drag/wheel/N/SPACE | ESC=Quit")
                    logger.info("regenerated with seed %d", seed)
                elif event.key in (K_PLUS, K_EQUALS, K_KP_PLUS):
                    camera.zoom(1)
                elif event.key in (K_MINUS, K_KP_MINUS):
                    camera.zoom(-1)
                elif event.key == K_LEFT:
                    camera.orbit(5.0, 0.0)
                elif event.key == K_RIGHT:
                    camera.orbit(-5.0, 0.0)
                elif event.key == K_UP:
                    camera.orbit(0.0, 5.0)
                elif event.key == K_DOWN:
                    camera.orbit(0.0, -5.0)
            elif event.type == MOUSEBUTTONDOWN and event.button == 1:
                dragging = True
            elif event.type == MOUSEBUTTONUP and event.button == 1:
                dragging = False
            elif event.type == MOUSEMOTION and dragging:
                camera.process_mouse(*event.rel)
            elif event.type == MOUSEWHEEL:
                camera.zoom(event.y)

        GL.glMatrixMode(GL.GL_PROJECTION)
        GL.glLoadIdentity()
        GLU.gluPerspective(camera.fov, width / height, 0.05, 100.0)
        GL.glMatrixMode(GL.GL_MODELVIEW)

        GL.glClear(GL.GL_COLOR_BUFFER_BIT | GL.GL_DEPTH_BUFFER_BIT)
        GL.glLoadIdentity()
        GL.glMultMatrixf(camera.get_view_matrix().T.astype(np.float32).flatten())

        renderer.render(elapsed)
        pygame.display.flip()

    renderer.cleanup()
    pygame.quit()


def main():
    parser = argparse.ArgumentParser(description="Procedural flower viewer")
    parser.add_argument("--headless", action="store_true", help="Run without display")
    parser.add_argument("--num_frames", type=int, default=60, help="Frames for headless mode")
    parser.add_argument("--preset", default="realistic_rose", choices=sorted(PRESETS), help="Flower preset")
    parser.add_argument("--seed", type=int, default=42, help="Generation seed")
    parser.add_argument("--verbose", action="store_true", help="Log generation details")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    if args.headless:
        frames = run_headless(args.num_frames, preset=args.preset, seed=args.seed, verbose=args.verbose)
        print(f"Headless: animated {len(frames)} frames of {args.preset} (seed {args.seed})")
    else:
        run_viewer(args.preset, args.seed)


if __name__ == "__main__":
    main()
