"""Batched, differentiable capsule signed distance and volume in PyTorch."""

import math

import torch


def sd_capsule(points, p0, p1, radius):
    """Signed distance function for a capsule.

    Args:
        points: (N, 3) tensor of points
        p0: (3,) tensor first endpoint of the axis segment
        p1: (3,) tensor second endpoint of the axis segment
        radius: scalar tensor capsule radius

    Returns:
        (N,) tensor of signed distances (negative inside)
    """
    d = p1 - p0
    w = points - p0
    # Clamp the denominator so a zero-length axis reduces to a sphere at p0
    length_sq = torch.clamp(torch.dot(d, d), min=torch.finfo(points.dtype).tiny)
    t = torch.clamp((w @ d) / length_sq, 0.0, 1.0)
    diff = w - t[:, None] * d

    # Smooth norm so the gradient stays finite for points on the axis
    dist = torch.sqrt(torch.sum(diff * diff, dim=-1) + torch.finfo(points.dtype).tiny)
    return dist - radius


def capsule_volume(p0, p1, radius):
    """Capsule volume pi r^2 L + 4/3 pi r^3 as a differentiable scalar tensor."""
    d = p1 - p0
    length = torch.sqrt(torch.dot(d, d) + torch.finfo(d.dtype).tiny)
    return math.pi * radius**2 * length + 4.0 / 3.0 * math.pi * radius**3
