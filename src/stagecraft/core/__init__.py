"""Core graph model: conversion, validation, layout and configuration."""
